# chess_server/services/logging_service.py

import logging
import sys

EVENT_LOGGER_NAME = 'chess_server.events'

events_logger = logging.getLogger(EVENT_LOGGER_NAME)


def configure_event_log(log_path: str, level: int = logging.INFO):
    """
    Направляет журнал событий в файл (путь из app.config) и в stderr.
    Повторный вызов (новое приложение в тестах) заменяет старые обработчики.
    """
    for handler in list(events_logger.handlers):
        events_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(level)
    events_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    events_logger.addHandler(stream_handler)

    events_logger.setLevel(level)
    events_logger.propagate = False


def log_event_to_file(log_entry: str, level: int = logging.INFO):
    """Записывает общее событие в журнал событий."""
    events_logger.log(level, log_entry)
