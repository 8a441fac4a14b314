# chess_server/services/errors.py
"""
Игровые ошибки. Текст каждой ошибки уходит клиенту как есть: {"error": message}.
"""


class GameError(Exception):
    """Базовая игровая ошибка. Состояние сессии при ней не меняется."""
    message = "game error"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {'error': self.message}


class GameNotFoundError(GameError):
    message = "game not found"


class GameFullError(GameError):
    message = "game full"


class NotYourTurnError(GameError):
    message = "not your turn"


class IllegalMoveError(GameError):
    """Ход отклонен движком правил. message = причина от движка."""
    message = "invalid move"


class GameNotActiveError(GameError):
    message = "game over"


class TransportError(Exception):
    """Не удалось записать в соединение."""
