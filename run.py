import eventlet

eventlet.monkey_patch()

from fitcoach import create_app  # noqa: E402
from fitcoach.extensions import socketio  # noqa: E402

app = create_app()

if __name__ == '__main__':
    socketio.run(app, debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000)
