# chess_server/game_core/rules_engine.py
"""
Адаптер над python-chess.

Сервер не знает ничего о доске и правилах: всё, что ему нужно,
это пять операций ниже. Позиция (chess.Board) никогда не мутирует
на месте, apply_move всегда возвращает новый объект.
"""

from typing import NamedTuple, Optional

import chess

from .constants import (
    WHITE, BLACK,
    OUTCOME_ONGOING, OUTCOME_CHECKMATE, OUTCOME_STALEMATE, OUTCOME_DRAW
)
from ..services.errors import IllegalMoveError


class Outcome(NamedTuple):
    kind: str
    reason: Optional[str] = None

    @property
    def is_over(self) -> bool:
        return self.kind != OUTCOME_ONGOING


ONGOING = Outcome(OUTCOME_ONGOING)


class RulesEngine:
    """
    Обертка над движком правил (python-chess).
    Не хранит состояния, поэтому один экземпляр можно делить между сессиями.
    """

    def new_game(self) -> chess.Board:
        return chess.Board()

    def apply_move(self, position: chess.Board, notation: str) -> chess.Board:
        """
        Применяет ход к КОПИИ позиции.
        Принимает координатную нотацию (e2e4, e7e8q) и, если она не подошла, SAN (Nf3, O-O).
        """
        notation = (notation or '').strip()
        if not notation:
            raise IllegalMoveError("invalid move: empty notation")

        move = self._parse(position, notation)

        new_position = position.copy()
        new_position.push(move)
        return new_position

    def side_to_move(self, position: chess.Board) -> str:
        return WHITE if position.turn == chess.WHITE else BLACK

    def outcome(self, position: chess.Board) -> Outcome:
        result = position.outcome()
        if result is None:
            return ONGOING

        if result.termination == chess.Termination.CHECKMATE:
            return Outcome(OUTCOME_CHECKMATE)
        if result.termination == chess.Termination.STALEMATE:
            return Outcome(OUTCOME_STALEMATE)

        # Недостаток материала, правило 75 ходов, пятикратное повторение...
        return Outcome(OUTCOME_DRAW, result.termination.name.lower())

    def serialize(self, position: chess.Board) -> str:
        return position.fen()

    # --- Внутреннее ---

    def _parse(self, position: chess.Board, notation: str) -> chess.Move:
        try:
            move = chess.Move.from_uci(notation)
        except ValueError:
            move = None

        if move is not None:
            if move not in position.legal_moves:
                raise IllegalMoveError(f"illegal move: {notation}")
            return move

        try:
            return position.parse_san(notation)
        except ValueError:
            raise IllegalMoveError(f"invalid move: {notation}")
