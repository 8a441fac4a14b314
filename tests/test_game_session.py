"""Tests for chess_server/services/game_session.py"""

import threading

import chess
import pytest

from chess_server.game_core import RulesEngine, WHITE, BLACK
from chess_server.services.errors import (
    GameFullError,
    GameNotActiveError,
    GameNotFoundError,
    IllegalMoveError,
    NotYourTurnError,
)
from chess_server.services.game_state import STATE_WAITING, STATE_PLAYING, STATE_FINISHED

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class FromFenEngine(RulesEngine):
    """Движок, который начинает партию с заданной позиции."""

    def __init__(self, fen):
        self.fen = fen

    def new_game(self):
        return chess.Board(self.fen)


class CountingEngine(RulesEngine):
    """Считает, сколько раз движок реально применил ход."""

    def __init__(self):
        self.applied = 0

    def apply_move(self, position, notation):
        new_position = super().apply_move(position, notation)
        self.applied += 1
        return new_position


@pytest.fixture()
def started(make_session, make_connection):
    """Сессия с двумя игроками: white создал, black вошел."""
    white, black = make_connection('white'), make_connection('black')
    game_session = make_session(creator=white, color=WHITE)
    game_session.join(black)
    white.sent.clear()
    black.sent.clear()
    return game_session, white, black


# --- JOIN ---
def test_new_session_waits_for_opponent(make_session):
    game_session = make_session()
    assert game_session.phase == STATE_WAITING
    assert game_session.player_count() == 1
    assert game_session.snapshot() == {'status': 'ongoing', 'fen': START_FEN}


@pytest.mark.parametrize("creator_color, expected", [(WHITE, BLACK), (BLACK, WHITE)])
def test_join_assigns_complement_color(make_session, make_connection, creator_color, expected):
    creator, joiner = make_connection('a'), make_connection('b')
    game_session = make_session(creator=creator, color=creator_color)

    color = game_session.join(joiner)

    assert color == expected
    assert [p.color for p in game_session.get_players()] == [creator_color, expected]
    assert game_session.phase == STATE_PLAYING


def test_join_replies_then_broadcasts(make_session, make_connection):
    creator, joiner = make_connection('a'), make_connection('b')
    game_session = make_session(creator=creator, color=BLACK, game_id='g-42')

    game_session.join(joiner)

    snapshot = {'status': 'ongoing', 'fen': START_FEN}
    assert joiner.sent == [{'status': 'joined', 'gameID': 'g-42', 'color': WHITE}, snapshot]
    assert creator.sent == [snapshot]


def test_third_player_is_rejected(started, make_connection):
    game_session, white, black = started
    intruder = make_connection('intruder')

    with pytest.raises(GameFullError):
        game_session.join(intruder)

    assert game_session.player_count() == 2
    assert intruder.sent == []
    assert [p.connection for p in game_session.get_players()] == [white, black]


def test_concurrent_joins_never_exceed_two_players(make_session, make_connection):
    game_session = make_session()
    joiners = [make_connection(f'j{i}') for i in range(16)]
    barrier = threading.Barrier(len(joiners))
    results = []
    results_lock = threading.Lock()

    def _join(connection):
        barrier.wait()
        try:
            color = game_session.join(connection)
        except GameFullError:
            color = None
        with results_lock:
            results.append(color)

    threads = [threading.Thread(target=_join, args=(c,)) for c in joiners]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(BLACK) == 1
    assert results.count(None) == len(joiners) - 1
    assert game_session.player_count() == 2


def test_join_closed_session_is_not_found(make_session, make_connection):
    game_session = make_session()
    game_session.close()
    with pytest.raises(GameNotFoundError):
        game_session.join(make_connection('late'))


# --- MOVES ---
def test_accepted_move_applies_engine_once_and_broadcasts(started):
    game_session, white, black = started

    status = game_session.apply_move(white, "e2e4")

    expected = chess.Board()
    expected.push_uci("e2e4")
    assert status == 'ongoing'
    assert game_session.snapshot()['fen'] == expected.fen()
    assert white.sent == [{'status': 'ongoing', 'fen': expected.fen()}]
    assert black.sent == white.sent


def test_move_out_of_turn_is_rejected_and_position_unchanged(started):
    game_session, white, black = started

    with pytest.raises(NotYourTurnError):
        game_session.apply_move(black, "e7e5")

    game_session.apply_move(white, "e2e4")
    fen_after_white = game_session.snapshot()['fen']

    with pytest.raises(NotYourTurnError):
        game_session.apply_move(white, "d2d4")

    assert game_session.snapshot()['fen'] == fen_after_white


def test_concurrent_moves_are_applied_once(make_session, make_connection):
    white, black = make_connection('white'), make_connection('black')
    engine = CountingEngine()
    game_session = make_session(creator=white, color=WHITE, engine=engine)
    game_session.join(black)

    attempts = 12
    barrier = threading.Barrier(attempts)
    results = []
    results_lock = threading.Lock()

    def _move():
        barrier.wait()
        try:
            outcome = game_session.apply_move(white, "e2e4")
        except NotYourTurnError:
            outcome = None
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=_move) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ongoing') == 1
    assert results.count(None) == attempts - 1
    assert engine.applied == 1

    expected = chess.Board()
    expected.push_uci("e2e4")
    assert game_session.snapshot()['fen'] == expected.fen()


def test_illegal_move_keeps_position(started):
    game_session, white, black = started

    with pytest.raises(IllegalMoveError) as exc_info:
        game_session.apply_move(white, "e2e5")

    assert exc_info.value.message == "illegal move: e2e5"
    assert game_session.snapshot()['fen'] == START_FEN
    assert white.sent == [] and black.sent == []


def test_stranger_cannot_move(started, make_connection):
    game_session, _, _ = started
    with pytest.raises(NotYourTurnError):
        game_session.apply_move(make_connection('stranger'), "e2e4")


def test_move_before_opponent_joins(make_session, make_connection):
    creator = make_connection('creator')
    game_session = make_session(creator=creator, color=WHITE)

    with pytest.raises(GameNotActiveError) as exc_info:
        game_session.apply_move(creator, "e2e4")

    assert exc_info.value.message == "waiting for opponent"
    assert game_session.snapshot()['fen'] == START_FEN


def test_checkmate_finishes_game(started):
    game_session, white, black = started

    for connection, move in [(white, "f2f3"), (black, "e7e5"), (white, "g2g4")]:
        game_session.apply_move(connection, move)
    status = game_session.apply_move(black, "d8h4")

    assert status == 'checkmate'
    assert game_session.phase == STATE_FINISHED
    assert white.sent[-1]['status'] == 'checkmate'

    with pytest.raises(GameNotActiveError) as exc_info:
        game_session.apply_move(white, "e1f2")
    assert exc_info.value.message == "game over"


def test_draw_finishes_game_even_with_legal_moves_left(make_session, make_connection):
    white, black = make_connection('w'), make_connection('b')
    engine = FromFenEngine("8/8/8/8/8/8/1q6/K6k w - - 0 1")
    game_session = make_session(creator=white, color=WHITE, engine=engine)
    game_session.join(black)

    assert game_session.apply_move(white, "a1b2") == 'draw'
    assert game_session.phase == STATE_FINISHED

    with pytest.raises(GameNotActiveError):
        game_session.apply_move(black, "h1g1")


def test_connection_playing_both_colors(make_session, make_connection):
    solo = make_connection('solo')
    game_session = make_session(creator=solo, color=BLACK)
    game_session.join(solo)

    game_session.apply_move(solo, "e2e4")
    game_session.apply_move(solo, "e7e5")

    assert game_session.get_colors(solo) == {WHITE, BLACK}
    # Один и тот же клиент получает каждую рассылку один раз
    assert [m.get('status') for m in solo.sent] == ['joined', 'ongoing', 'ongoing', 'ongoing']


# --- REMOVAL ---
def test_remove_participant_keeps_colors_of_others(started):
    game_session, white, black = started

    assert game_session.remove_participant(white) == 1
    assert game_session.remove_participant(white) == 0
    assert [(p.connection, p.color) for p in game_session.get_players()] == [(black, BLACK)]
    # Фаза назад не откатывается
    assert game_session.phase == STATE_PLAYING


def test_remaining_player_cannot_move_alone(started):
    game_session, white, black = started
    game_session.remove_participant(black)

    with pytest.raises(GameNotActiveError) as exc_info:
        game_session.apply_move(white, "e2e4")

    assert exc_info.value.message == "waiting for opponent"
    assert game_session.snapshot()['fen'] == START_FEN
    assert white.sent == []


def test_vacated_seat_can_be_taken_and_play_resumes(started, make_connection):
    game_session, white, black = started
    game_session.remove_participant(black)
    newcomer = make_connection('newcomer')

    assert game_session.join(newcomer) == BLACK

    game_session.apply_move(white, "e2e4")
    assert game_session.apply_move(newcomer, "e7e5") == 'ongoing'
