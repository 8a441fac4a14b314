# chess_server/services/game_state.py

from dataclasses import dataclass, field
from typing import List, Any

from chess_server.game_core import ONGOING, Outcome

# Создана, ждем второго игрока.
STATE_WAITING = "WAITING_FOR_OPPONENT"
# Оба игрока на месте, партия идет.
STATE_PLAYING = "IN_PROGRESS"
# Движок правил вернул терминальный исход. Обратного перехода нет.
STATE_FINISHED = "FINISHED"

# Допустимые переходы фазы (только вперед)
ALLOWED_TRANSITIONS = {
    STATE_WAITING: {STATE_PLAYING},
    STATE_PLAYING: {STATE_PLAYING, STATE_FINISHED},
    STATE_FINISHED: set(),
}


@dataclass
class Participant:
    connection: Any
    color: str


@dataclass
class GameState:
    """
    Простое хранилище (DTO) состояния конкретной игры. Не содержит логики.
    Менять только под замком GameSession.
    """
    position: Any
    players: List[Participant] = field(default_factory=list)
    outcome: Outcome = ONGOING
    session_state: str = STATE_WAITING
