# chess_server/services/connection.py

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import TransportError


@dataclass(frozen=True)
class Connection:
    """
    Ссылка на ОДНО клиентское соединение (SocketIO sid).
    Соединением владеет его обработчик; сессия только хранит ссылку
    и никогда его не закрывает. Сравнение идет только по sid.
    """
    sid: str
    socketio: Any = field(compare=False, repr=False)
    namespace: Optional[str] = field(default=None, compare=False)

    def send(self, payload: Dict[str, Any]):
        """
        Пишет JSON-сообщение клиенту (событие 'message').
        SocketIO только ставит пакет в очередь клиента и не ждет пира;
        зависшего клиента отключит ping-timeout Engine.IO.
        """
        try:
            self.socketio.send(payload, to=self.sid, namespace=self.namespace)
        except Exception as e:
            raise TransportError(f"write to {self.sid} failed: {e}") from e
