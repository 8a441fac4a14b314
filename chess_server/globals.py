# chess_server/globals.py

import datetime
import logging
import threading
from typing import Dict

from chess_server.services.logging_service import log_event_to_file

# --- Подключенные клиенты ---
# { 'sid': connect_time, ... }
connected_clients: Dict[str, datetime.datetime] = {}
connected_clients_lock = threading.Lock()

# Типы событий, которые пишем с уровнем WARNING
WARNING_EVENTS = {
    "PROTOCOL_ERROR",
    "UNKNOWN_ACTION",
    "WRITE_ERROR",
    "REGISTRY_WARN",
    "STATE_VIOLATION_ERROR",
    "HANDLER_ERROR",
}


def log_event(event_type, message, sid=None, game_id=None, extra_data=None):
    """
    Единая точка журналирования игровых событий.
    Формат: [время] [TYPE: ...] [SID: ...] [GameID: ...] [Data: ...] | сообщение
    """
    timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    log_entry = f"[{timestamp}] [TYPE: {event_type}]"

    if sid:
        log_entry += f" [SID: {sid}]"
    if game_id:
        log_entry += f" [GameID: {game_id}]"
    if extra_data:
        log_entry += f" [Data: {extra_data}]"

    log_entry += f" | {message}"

    level = logging.WARNING if event_type in WARNING_EVENTS else logging.INFO
    log_event_to_file(log_entry, level)
