"""Tests for admin schedule and location management."""
import json


def _schedule_payload(location_id, **overrides):
    data = {
        'day_of_week': 'monday', 'time': '20:30', 'duration_minutes': 120,
        'location_id': location_id, 'voting_in_advance_days': 2,
        'voting_time': '18:00', 'players_count': 14,
    }
    data.update(overrides)
    return data


def test_admin_creates_schedule(client, make_user, auth_headers, sample_location):
    headers = auth_headers(make_user(1, admin=True))
    res = client.post('/api/schedules', json=_schedule_payload(sample_location.id), headers=headers)
    assert res.status_code == 201
    schedule = json.loads(res.data)['schedule']
    assert schedule['day_of_week'] == 'MONDAY'
    assert schedule['time'] == '20:30:00'
    assert schedule['voting_time'] == '18:00:00'
    assert schedule['state'] == 'ACTIVE'
    assert schedule['location']['name'] == 'Olimp'


def test_non_admin_cannot_create_schedule(client, make_user, auth_headers, sample_location):
    headers = auth_headers(make_user(1))
    res = client.post('/api/schedules', json=_schedule_payload(sample_location.id), headers=headers)
    assert res.status_code == 403


def test_schedule_validation(client, make_user, auth_headers, sample_location):
    headers = auth_headers(make_user(1, admin=True))
    bad_payloads = [
        _schedule_payload(sample_location.id, day_of_week='someday'),
        _schedule_payload(sample_location.id, time='25:00'),
        _schedule_payload(sample_location.id, voting_in_advance_days=7),
        _schedule_payload(sample_location.id, players_count=0),
        _schedule_payload(999),
    ]
    for payload in bad_payloads:
        res = client.post('/api/schedules', json=payload, headers=headers)
        assert res.status_code == 400, payload


def test_list_schedules(client, make_schedule):
    make_schedule()
    res = client.get('/api/schedules')
    assert res.status_code == 200
    assert len(json.loads(res.data)['schedules']) == 1


def test_deactivate_schedule(client, make_user, auth_headers, make_schedule):
    schedule = make_schedule()
    headers = auth_headers(make_user(1, admin=True))
    res = client.patch(f'/api/schedules/{schedule.id}', json={'state': 'inactive'}, headers=headers)
    assert res.status_code == 200
    assert json.loads(res.data)['schedule']['state'] == 'INACTIVE'


def test_delete_schedule_with_votings_conflicts(client, make_user, auth_headers, make_schedule, make_voting):
    schedule = make_schedule()
    make_voting(schedule)
    headers = auth_headers(make_user(1, admin=True))
    res = client.delete(f'/api/schedules/{schedule.id}', headers=headers)
    assert res.status_code == 409


def test_delete_unused_schedule(client, make_user, auth_headers, make_schedule):
    schedule = make_schedule()
    headers = auth_headers(make_user(1, admin=True))
    res = client.delete(f'/api/schedules/{schedule.id}', headers=headers)
    assert res.status_code == 200
    assert json.loads(client.get('/api/schedules').data)['schedules'] == []


def test_location_crud(client, make_user, auth_headers):
    headers = auth_headers(make_user(1, admin=True))
    res = client.post('/api/locations', json={'name': 'Arena', 'address': 'Main 5'}, headers=headers)
    assert res.status_code == 201
    location = json.loads(res.data)['location']

    res = client.put(f'/api/locations/{location["id"]}', json={'name': 'New Arena'}, headers=headers)
    assert json.loads(res.data)['location']['name'] == 'New Arena'

    res = client.delete(f'/api/locations/{location["id"]}', headers=headers)
    assert res.status_code == 200
    assert json.loads(client.get('/api/locations').data)['locations'] == []


def test_location_in_use_cannot_be_deleted(client, make_user, auth_headers, make_schedule, sample_location):
    make_schedule()
    headers = auth_headers(make_user(1, admin=True))
    res = client.delete(f'/api/locations/{sample_location.id}', headers=headers)
    assert res.status_code == 409


def test_location_requires_name(client, make_user, auth_headers):
    headers = auth_headers(make_user(1, admin=True))
    res = client.post('/api/locations', json={'address': 'Nowhere'}, headers=headers)
    assert res.status_code == 400
