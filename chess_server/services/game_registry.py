# chess_server/services/game_registry.py

import threading
from contextlib import contextmanager, ExitStack
from typing import Any, Dict, List, Optional, Tuple

from .game_session import GameSession
from .game_factory import GameFactory
from .errors import GameNotFoundError


class _Shard:
    """Часть реестра: свой замок и свой словарь game_id -> GameSession."""
    __slots__ = ('lock', 'games')

    def __init__(self):
        self.lock = threading.RLock()
        self.games: Dict[str, GameSession] = {}


class GameRegistry:
    """
    Отвечает ИСКЛЮЧИТЕЛЬНО за хранение и поиск активных игровых сессий.
    Потокобезопасен.

    shards=1 это один общий замок; shards>1 делит пространство ID
    по hash(game_id), чтобы разные игры не толкались на одном замке.
    Замки реестра защищают только структуру словарей и никогда
    не держатся во время мутации сессии (кроме remove_participant).
    """

    def __init__(self, factory: GameFactory, shards: int = 1, log_event_func=None):
        if shards < 1:
            raise ValueError(f"shards must be >= 1, got {shards}")

        self.factory = factory
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]
        self.log_event = log_event_func or (lambda *args, **kwargs: None)

    # --- Замки ---

    def _shard_for(self, game_id: str) -> _Shard:
        return self._shards[hash(game_id) % len(self._shards)]

    @contextmanager
    def _all_shards(self):
        """Захватывает замки всех шардов, всегда в одном порядке."""
        with ExitStack() as stack:
            for shard in self._shards:
                stack.enter_context(shard.lock)
            yield

    # --- Публичный API ---

    def create(self, creator: Any) -> Tuple[str, GameSession]:
        """
        Регистрирует новую игру под свежим ID. Никогда не падает:
        при (маловероятной) коллизии ID просто генерируется заново.
        """
        while True:
            game_id = self.factory.new_game_id()
            shard = self._shard_for(game_id)
            with shard.lock:
                if game_id in shard.games:
                    self.log_event("REGISTRY_WARN", f"Коллизия ID {game_id}, генерируем заново.", game_id=game_id)
                    continue
                game_session = self.factory.create_game(game_id, creator)
                shard.games[game_id] = game_session
                break

        self.log_event("REGISTRY_ADD", f"Игра {game_id} добавлена.",
                       sid=getattr(creator, 'sid', None), game_id=game_id)
        return game_id, game_session

    def get(self, game_id: Optional[str]) -> GameSession:
        """Получить сессию по ID игры или GameNotFoundError."""
        if not game_id:
            raise GameNotFoundError()

        shard = self._shard_for(game_id)
        with shard.lock:
            game_session = shard.games.get(game_id)

        if game_session is None:
            raise GameNotFoundError()
        return game_session

    def remove(self, game_id: str):
        """Удаляет игру; отсутствие игры это не ошибка."""
        if not game_id:
            return

        shard = self._shard_for(game_id)
        with shard.lock:
            game_session = shard.games.pop(game_id, None)
            if game_session is None:
                return
            game_session.close()

        self.log_event("REGISTRY_REMOVE", f"Игра {game_id} удалена.", game_id=game_id)

    def remove_participant(self, connection: Any) -> List[str]:
        """
        Вызывается при закрытии соединения. Убирает его из всех игр,
        где оно сидит, и удаляет игры, в которых не осталось игроков.
        Держит замок всего реестра на все время обхода; каждую сессию
        меняет под ее собственным замком (порядок: реестр -> сессия).
        Возвращает ID затронутых игр.
        """
        affected = []
        with self._all_shards():
            for shard in self._shards:
                for game_id, game_session in list(shard.games.items()):
                    with game_session.lock:
                        if game_session.remove_participant(connection):
                            affected.append(game_id)

                        if game_session.is_empty():
                            game_session.closed = True
                            del shard.games[game_id]
                            self.log_event("REGISTRY_REMOVE", f"Игра {game_id} удалена: игроков не осталось.",
                                           game_id=game_id)
        return affected

    def count(self) -> int:
        with self._all_shards():
            return sum(len(shard.games) for shard in self._shards)

    def game_ids(self) -> List[str]:
        with self._all_shards():
            return [game_id for shard in self._shards for game_id in shard.games]
