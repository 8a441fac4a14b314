# chess_server/services/connection_handler.py

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from marshmallow import ValidationError

from chess_server.api.schemas import ActionSchema
from .game_registry import GameRegistry
from .errors import GameError, TransportError

logger = logging.getLogger(__name__)

Envelope = Dict[str, Any]


class ConnectionHandler:
    """
    Разбирает входящие сообщения одного соединения и раскидывает их
    по действиям create / join / move. Сам ничего не хранит:
    общее состояние живет в GameRegistry и GameSession.
    """

    def __init__(self, registry: GameRegistry, log_event: Optional[Callable] = None):
        self.registry = registry
        self.log_event = log_event or (lambda *args, **kwargs: None)
        self.schema = ActionSchema()

        self._actions = {
            'create': self._handle_create,
            'join': self._handle_join,
            'move': self._handle_move,
        }

    ### Разбор сообщения ###

    def decode(self, connection: Any, raw: Any) -> Optional[Envelope]:
        """
        JSON-строка или уже разобранный объект -> конверт действия.
        Ошибки протокола только логируются: цикл чтения продолжается, ответа нет.
        """
        sid = getattr(connection, 'sid', None)
        data = raw

        if isinstance(raw, (str, bytes, bytearray)):
            try:
                data = json.loads(raw)
            except ValueError as e:
                self.log_event("PROTOCOL_ERROR", f"Malformed JSON: {e}", sid=sid, extra_data=repr(raw)[:200])
                return None

        if not isinstance(data, dict):
            self.log_event("PROTOCOL_ERROR", "Payload is not a JSON object.", sid=sid, extra_data=repr(data)[:200])
            return None

        try:
            return self.schema.load(data)
        except ValidationError as e:
            self.log_event("PROTOCOL_ERROR", f"Invalid envelope: {e.messages}", sid=sid)
            return None

    ### Публичный API (вызывается из обработчиков SocketIO) ###

    def handle_message(self, connection: Any, raw: Any):
        envelope = self.decode(connection, raw)
        if envelope is None:
            return

        action = envelope['action']
        handler = self._actions.get(action)
        if handler is None:
            self.log_event("UNKNOWN_ACTION", f"Unknown action: {action}", sid=getattr(connection, 'sid', None))
            return

        try:
            handler(connection, envelope)
        except GameError as e:
            self.log_event("GAME_ERROR", f"{action}: {e.message}",
                           sid=getattr(connection, 'sid', None), game_id=envelope.get('game_id'))
            self._send(connection, e.to_payload())

    def handle_close(self, connection: Any) -> List[str]:
        """Соединение закрыто: убираем его из всех игр. Само соединение не трогаем."""
        affected = self.registry.remove_participant(connection)
        self.log_event("CONNECTION_CLEANUP", f"Removed from {len(affected)} game(s).",
                       sid=getattr(connection, 'sid', None))
        return affected

    ### Действия ###

    def _handle_create(self, connection: Any, envelope: Envelope):
        game_id, game_session = self.registry.create(connection)
        self._send(connection, {
            'status': 'created',
            'gameID': game_id,
            'color': game_session.creator_color
        })

    def _handle_join(self, connection: Any, envelope: Envelope):
        game_session = self.registry.get(envelope.get('game_id'))
        # Ответ 'joined' и рассылка состояния уходят изнутри join, под замком сессии.
        game_session.join(connection)

    def _handle_move(self, connection: Any, envelope: Envelope):
        game_session = self.registry.get(envelope.get('game_id'))
        # Подтверждением хода служит рассылка нового состояния.
        game_session.apply_move(connection, envelope.get('move'))

    ### Приватные методы ###

    def _send(self, connection: Any, payload: Dict[str, Any]):
        try:
            connection.send(payload)
        except TransportError as e:
            logger.warning(f"[ConnectionHandler] {e}")
            self.log_event("WRITE_ERROR", str(e), sid=getattr(connection, 'sid', None))
