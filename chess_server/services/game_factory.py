# chess_server/services/game_factory.py

import uuid
import random
from typing import Any, Callable, Optional

from .game_session import GameSession
from chess_server.game_core import COLORS, RulesEngine


class GameFactory:
    """
    Собирает новые GameSession: выдает ID и случайный цвет создателя.
    Источник случайности внедряется, чтобы тесты могли его зафиксировать.
    """

    def __init__(
        self,
        rules_engine: RulesEngine,
        log_event: Optional[Callable] = None,
        rng: Optional[random.Random] = None
    ):
        self.rules_engine = rules_engine
        self.log_event = log_event or (lambda *args, **kwargs: None)
        self.rng = rng or random.Random()

    def new_game_id(self) -> str:
        return str(uuid.uuid4())

    def pick_color(self) -> str:
        return self.rng.choice(COLORS)

    def create_game(self, game_id: str, creator: Any) -> GameSession:
        """
        Создает сессию с начальной позицией; создатель садится первым.
        """
        color = self.pick_color()

        new_game_session = GameSession(
            game_id=game_id,
            rules_engine=self.rules_engine,
            creator=creator,
            creator_color=color,
            log_event=self.log_event
        )

        self.log_event("GAME_CREATED", f"Игра {game_id} создана, создатель играет за {color}",
                       game_id=game_id, sid=getattr(creator, 'sid', None))
        return new_game_session
