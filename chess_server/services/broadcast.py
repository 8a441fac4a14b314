# chess_server/services/broadcast.py

import logging
from typing import Dict, Callable, Optional, TYPE_CHECKING

from .errors import TransportError

if TYPE_CHECKING:
    from chess_server.game_core import RulesEngine
    from .game_state import GameState
    from .game_session import GameSession

logger = logging.getLogger(__name__)

Snapshot = Dict[str, str]


def build_snapshot(rules_engine: 'RulesEngine', state: 'GameState') -> Snapshot:
    """Проекция состояния игры для клиентов: {status, fen}."""
    return {
        'status': state.outcome.kind,
        'fen': rules_engine.serialize(state.position),
    }


def broadcast_game_state(session: 'GameSession', log_event: Optional[Callable] = None) -> int:
    """
    Рассылает текущий снапшот сессии всем ее участникам.
    Весь проход идет под замком сессии (RLock, повторный захват из
    join/apply_move безопасен), поэтому снапшот соответствует ровно
    той мутации, которая вызвала рассылку.

    Ошибка записи одному игроку логируется и не мешает остальным;
    состояние сессии при этом не меняется. Возвращает число успешных отправок.
    """
    log_event = log_event or (lambda *args, **kwargs: None)

    with session.lock:
        state = session.snapshot()
        connections = session.get_all_connections()

        delivered = 0
        for connection in connections:
            try:
                connection.send(state)
                delivered += 1
            except TransportError as e:
                logger.warning(f"[Broadcast] {e}")
                log_event("WRITE_ERROR", f"Не удалось отправить состояние: {e}",
                          sid=getattr(connection, 'sid', None), game_id=session.id)

    log_event("BROADCAST", f"Состояние разослано ({delivered}/{len(connections)}): {state['status']}",
              game_id=session.id)
    return delivered
