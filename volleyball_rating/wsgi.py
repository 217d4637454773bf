"""WSGI entrypoint used by Gunicorn."""
import atexit
import os

from volleyball_rating.app import create_app

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)
atexit.register(app.extensions['task_runner'].cancel_all)
