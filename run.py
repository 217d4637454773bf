#!/usr/bin/env python3
"""Entry point for the volleyball rating service."""
import atexit
import os
from volleyball_rating.app import create_app, socketio, get_telegram_client

config_name = os.environ.get('FLASK_ENV', 'development')
app = create_app(config_name)
atexit.register(app.extensions['task_runner'].cancel_all)

if __name__ == '__main__':
    if app.config.get('BOT_LONG_POLLING'):
        from volleyball_rating.polling import UpdatePoller
        with app.app_context():
            poller = UpdatePoller(app, get_telegram_client())
        poller.start()
        atexit.register(poller.stop, 1.0)

    port = int(os.environ.get('PORT', 5001))
    print(f"🏐 Volleyball rating starting on http://localhost:{port}")
    socketio.run(
        app, host='0.0.0.0', port=port,
        debug=(config_name == 'development'),
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )
