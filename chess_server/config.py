# chess_server/config.py

import os


class Config:
    """Базовый класс конфигурации (безопасные значения)."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'chess-server-default-key-SHOULD-BE-CHANGED'

    LOG_FILE = os.environ.get('LOG_FILE') or 'application.log'

    # --- Реестр игр ---
    # 1 = один общий замок; больше = шардированные замки по ID игры
    REGISTRY_SHARDS = 1
    # None = системная случайность; число = воспроизводимые цвета
    COLOR_SEED = None

    # --- SocketIO / Engine.IO ---
    # Клиент, не ответивший на ping за PING_TIMEOUT, считается отключенным
    PING_INTERVAL = 25
    PING_TIMEOUT = 20
    CORS_ALLOWED_ORIGINS = "*"
    # None = автоопределение (eventlet, если установлен)
    SOCKETIO_ASYNC_MODE = None

    PORT = int(os.environ.get('PORT', '8080'))
