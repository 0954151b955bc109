import logging

from flask import request
from flask_jwt_extended import decode_token
from flask_socketio import join_room

from fitcoach.extensions import socketio


def user_room(user_id):
    return f"user_{user_id}"


@socketio.on("connect")
def handle_connect(auth=None):
    token = (auth or {}).get("token") or request.args.get("token")
    if not token:
        return False
    try:
        claims = decode_token(token)
    except Exception as e:
        logging.info(f"Rejected socket connection: {e}")
        return False
    join_room(user_room(claims["sub"]))
    return True


def emit_to_user(user_id, event, payload):
    """Best-effort real-time push; the stored record is the source of truth."""
    try:
        socketio.emit(event, payload, to=user_room(user_id))
    except Exception as e:
        logging.warning(f"Socket push to user {user_id} failed: {e}")
