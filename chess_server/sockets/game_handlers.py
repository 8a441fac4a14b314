# chess_server/sockets/game_handlers.py
import logging
from flask import request, current_app
from ..extensions import socketio
from ..globals import log_event
from .connection_handlers import current_connection

logger = logging.getLogger(__name__)


@socketio.on('message')
def handle_message(data):
    """
    Единственное игровое событие: конверт {action, gameID?, move?}.
    Ответы и рассылки уходят клиентам тем же событием 'message'.
    """
    connection_handler = current_app.connection_handler
    sid = request.sid

    try:
        connection_handler.handle_message(current_connection(), data)
    except Exception as e:
        # Неожиданная ошибка не должна ронять другие соединения
        logger.error(f"[SocketHandler] Ошибка при обработке сообщения от {sid}: {e}", exc_info=True)
        log_event("HANDLER_ERROR", f"Unhandled error: {e}", sid=sid)
