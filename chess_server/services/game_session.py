# chess_server/services/game_session.py

# --- Стандартная библиотека ---
import threading
import logging
from typing import Any, Callable, List, Optional, Set

# --- Импорты сервисов (локальные) ---
from .game_state import (
    GameState,
    Participant,
    ALLOWED_TRANSITIONS,
    STATE_WAITING,
    STATE_PLAYING,
    STATE_FINISHED
)
from .broadcast import build_snapshot, broadcast_game_state, Snapshot
from .errors import (
    GameNotFoundError,
    GameFullError,
    NotYourTurnError,
    IllegalMoveError,
    GameNotActiveError,
    TransportError
)

# --- Импорты логики ядра ---
from chess_server.game_core import MAX_PLAYERS, opposite_color, RulesEngine

logger = logging.getLogger(__name__)


class GameSession:
    """
    Представляет ОДНУ игру: авторитетную позицию, не более двух участников
    и их цвета. Все операции идут под собственным RLock сессии,
    включая рассылку, которую вызвала мутация.
    """

    def __init__(
        self,
        game_id: str,
        rules_engine: RulesEngine,
        creator: Any,
        creator_color: str,
        log_event: Optional[Callable] = None,
        broadcast: Optional[Callable] = None
    ):
        self.id = game_id
        self.creator_color = creator_color
        self.rules = rules_engine
        self.log_event = log_event or (lambda *args, **kwargs: None)
        self.broadcast = broadcast or broadcast_game_state
        self.lock = threading.RLock()

        self.state = GameState(
            position=self.rules.new_game(),
            players=[Participant(connection=creator, color=creator_color)]
        )
        # Выставляется реестром при удалении; такую сессию больше нельзя менять.
        self.closed = False

        self.log_event("SESSION_INIT", f"Сессия {self.id} создана. Цвет создателя: {creator_color}",
                       sid=getattr(creator, 'sid', None), game_id=self.id)

    # --- Хелперы ---

    @property
    def phase(self) -> str:
        return self.state.session_state

    def get_all_connections(self) -> list:
        """Соединения участников без повторов, в порядке посадки."""
        with self.lock:
            seen = []
            for player in self.state.players:
                if player.connection not in seen:
                    seen.append(player.connection)
            return seen

    def get_colors(self, connection: Any) -> Set[str]:
        """Цвета, за которые играет соединение (пусто, если оно не участник)."""
        with self.lock:
            return {p.color for p in self.state.players if p.connection == connection}

    def get_players(self) -> List[Participant]:
        with self.lock:
            return list(self.state.players)

    def player_count(self) -> int:
        with self.lock:
            return len(self.state.players)

    def is_empty(self) -> bool:
        return self.player_count() == 0

    def _set_state(self, new_state: str) -> bool:
        current = self.state.session_state
        if new_state not in ALLOWED_TRANSITIONS[current]:
            self.log_event(
                "STATE_VIOLATION_ERROR",
                f"Недопустимый переход {current} -> {new_state}. Игнорируем.",
                game_id=self.id
            )
            return False
        if new_state != current:
            self.state.session_state = new_state
            self.log_event("STATE_CHANGE", f"State -> {new_state}", game_id=self.id)
        return True

    def _reply(self, connection: Any, payload: dict):
        """Ответ одному клиенту. Сбой записи уберет его обработчик disconnect."""
        try:
            connection.send(payload)
        except TransportError as e:
            logger.warning(f"[GameSession {self.id}] {e}")
            self.log_event("WRITE_ERROR", f"Не удалось ответить клиенту: {e}",
                           sid=getattr(connection, 'sid', None), game_id=self.id)

    # --- Жизненный цикл ---

    def join(self, connection: Any) -> str:
        """
        Сажает второго игрока. Цвет всегда противоположен цвету того, кто уже сидит.
        Проверка "мест нет" и добавление делаются под одним замком.
        """
        with self.lock:
            if self.closed:
                raise GameNotFoundError()

            players = self.state.players
            if len(players) >= MAX_PLAYERS:
                self.log_event("JOIN_REJECTED", "Попытка войти в заполненную игру.",
                               sid=getattr(connection, 'sid', None), game_id=self.id)
                raise GameFullError()

            color = opposite_color(players[0].color)
            players.append(Participant(connection=connection, color=color))

            self.log_event("PLAYER_JOINED", f"Игрок вошел в игру за {color}. Игроков: {len(players)}",
                           sid=getattr(connection, 'sid', None), game_id=self.id)

            self._reply(connection, {'status': 'joined', 'gameID': self.id, 'color': color})

            if len(players) == MAX_PLAYERS and self.state.session_state == STATE_WAITING:
                self._set_state(STATE_PLAYING)

            self.broadcast(self, self.log_event)
            return color

    def remove_participant(self, connection: Any) -> int:
        """
        Убирает все места, занятые соединением. Само соединение не закрывает.
        Возвращает число освобожденных мест.
        """
        with self.lock:
            before = len(self.state.players)
            self.state.players = [p for p in self.state.players if p.connection != connection]
            removed = before - len(self.state.players)

            if removed:
                self.log_event("PLAYER_REMOVED", f"Игрок удален из игры. Осталось: {len(self.state.players)}",
                               sid=getattr(connection, 'sid', None), game_id=self.id)
            return removed

    def close(self):
        with self.lock:
            self.closed = True

    # --- Логика хода ---

    def apply_move(self, connection: Any, notation: str) -> str:
        """
        Применяет ход игрока.

        1. Соединение должно играть за цвет, чей сейчас ход.
        2. Партия должна идти (не ждет соперника и не закончена).
        3. Движок правил либо возвращает новую позицию, либо отклоняет ход;
           при отказе позиция не меняется.
        4. Пересчитываем фазу по исходу и рассылаем состояние.
        """
        with self.lock:
            if self.closed:
                raise GameNotFoundError()

            sid = getattr(connection, 'sid', None)
            colors = self.get_colors(connection)

            # --- Проверки-предохранители ---
            if not colors:
                self.log_event("MOVE_REJECTED", "Ход от соединения, которое не играет в этой игре.",
                               sid=sid, game_id=self.id)
                raise NotYourTurnError()

            if self.state.session_state == STATE_WAITING:
                raise GameNotActiveError("waiting for opponent")
            if self.state.session_state == STATE_FINISHED:
                raise GameNotActiveError("game over")
            # Фаза назад не откатывается, но без соперника ходить нельзя
            if len(self.state.players) < MAX_PLAYERS:
                self.log_event("MOVE_REJECTED", "Соперник вышел, место свободно.", sid=sid, game_id=self.id)
                raise GameNotActiveError("waiting for opponent")

            side_to_move = self.rules.side_to_move(self.state.position)
            if side_to_move not in colors:
                self.log_event("MOVE_REJECTED", f"Не его ход (ходят {side_to_move}).", sid=sid, game_id=self.id)
                raise NotYourTurnError()

            try:
                new_position = self.rules.apply_move(self.state.position, notation)
            except IllegalMoveError as e:
                self.log_event("MOVE_REJECTED", f"Недопустимый ход {notation!r}: {e.message}", sid=sid, game_id=self.id)
                raise

            outcome = self.rules.outcome(new_position)
            self.state.position = new_position
            self.state.outcome = outcome

            self.log_event("MOVE", f"{side_to_move}: {notation}", sid=sid, game_id=self.id)

            if outcome.is_over:
                self._set_state(STATE_FINISHED)
                self.log_event("GAME_OVER", f"Партия окончена: {outcome.kind}",
                               game_id=self.id, extra_data=outcome.reason)

            self.broadcast(self, self.log_event)
            return outcome.kind

    def snapshot(self) -> Snapshot:
        with self.lock:
            return build_snapshot(self.rules, self.state)
