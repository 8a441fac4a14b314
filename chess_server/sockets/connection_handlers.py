# chess_server/sockets/connection_handlers.py
import datetime
from flask import request, current_app
from ..extensions import socketio
from ..globals import connected_clients, connected_clients_lock, log_event
from ..services.connection import Connection


def current_connection() -> Connection:
    """Соединение текущего SocketIO-запроса."""
    return Connection(sid=request.sid, socketio=socketio, namespace=request.namespace)


@socketio.on('connect')
def handle_connect(auth=None):
    sid = request.sid

    with connected_clients_lock:
        connected_clients[sid] = datetime.datetime.now()

    log_event("SESSION_START", f"Client connected from {request.remote_addr}.", sid=sid)


@socketio.on('disconnect')
def handle_disconnect(reason=None):
    """
    Соединение закрыто (клиентом, ошибкой транспорта или ping-timeout).
    Убираем игрока из всех его игр; пустые игры удаляет реестр.
    """
    connection_handler = current_app.connection_handler

    sid = request.sid
    duration_str = "N/A"

    with connected_clients_lock:
        connect_time = connected_clients.pop(sid, None)

    if connect_time:
        duration = datetime.datetime.now() - connect_time
        duration_str = str(datetime.timedelta(seconds=int(duration.total_seconds())))

    log_event("SESSION_END", f"Client disconnected ({reason or 'closed'}). Session duration: {duration_str}", sid=sid)

    connection_handler.handle_close(current_connection())
