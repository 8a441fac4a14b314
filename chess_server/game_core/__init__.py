# chess_server/game_core/__init__.py

# "Публичный API" game_core
from .constants import (
    WHITE, BLACK, COLORS, MAX_PLAYERS,
    OUTCOME_ONGOING, OUTCOME_CHECKMATE, OUTCOME_STALEMATE, OUTCOME_DRAW,
    opposite_color
)

from .rules_engine import (
    RulesEngine,
    Outcome,
    ONGOING
)
