# chess_server/game_core/constants.py

# === Цвета игроков ===
WHITE = 'white'
BLACK = 'black'
COLORS = (WHITE, BLACK)

# === Исходы партии (то, что уходит клиенту в поле 'status') ===
OUTCOME_ONGOING = 'ongoing'
OUTCOME_CHECKMATE = 'checkmate'
OUTCOME_STALEMATE = 'stalemate'
OUTCOME_DRAW = 'draw'

# Не больше двух игроков в одной сессии
MAX_PLAYERS = 2


def opposite_color(color: str) -> str:
    """Возвращает цвет соперника."""
    return BLACK if color == WHITE else WHITE
