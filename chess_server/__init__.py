import os
import logging
import random
from flask import Flask
from .extensions import socketio
from .globals import log_event
from .services.logging_service import configure_event_log

logger = logging.getLogger(__name__)


def _configure_logging(app):
    """Настраивает файловый логгер приложения и журнал событий."""
    log_path = os.path.abspath(app.config['LOG_FILE'])
    # app.logger общий для всех экземпляров приложения (имя пакета)
    for handler in list(app.logger.handlers):
        if isinstance(handler, logging.FileHandler):
            app.logger.removeHandler(handler)
            handler.close()

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)

    configure_event_log(app.config['LOG_FILE'])
    logger.info("Файловый логгер настроен.")


def _init_extensions(app):
    """Инициализирует расширения Flask."""
    socketio.init_app(
        app,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins=app.config['CORS_ALLOWED_ORIGINS'],
        ping_interval=app.config['PING_INTERVAL'],
        ping_timeout=app.config['PING_TIMEOUT']
    )
    logger.info("Расширение SocketIO инициализировано.")


def _init_services(app):
    """Инициализирует и внедряет сервисы приложения."""
    from .game_core import RulesEngine
    from .services.game_factory import GameFactory
    from .services.game_registry import GameRegistry
    from .services.connection_handler import ConnectionHandler

    rules_engine = RulesEngine()

    game_factory = GameFactory(
        rules_engine=rules_engine,
        log_event=log_event,
        rng=random.Random(app.config['COLOR_SEED'])
    )

    registry = GameRegistry(
        factory=game_factory,
        shards=app.config['REGISTRY_SHARDS'],
        log_event_func=log_event
    )

    # Прикрепляем сервисы к экземпляру приложения
    app.game_registry = registry
    app.connection_handler = ConnectionHandler(registry=registry, log_event=log_event)
    logger.info("Игровые сервисы (Registry, Factory, ConnectionHandler) инициализированы.")


def _register_blueprints(app):
    """Регистрирует маршруты HTTP (Blueprints)."""
    from .api.main_routes import bp as main_bp
    app.register_blueprint(main_bp)
    logger.info("Blueprints зарегистрированы.")


def _register_socketio_handlers():
    """
    Импортирует обработчики SocketIO для их регистрации.
    Вызывается ДО init_app: пока сервер не создан, декораторы кладут
    обработчики в socketio.handlers, и каждый init_app переносит их
    на свой новый сервер (фабрику можно вызывать много раз).
    """
    from .sockets import connection_handlers
    from .sockets import game_handlers
    logger.info("Обработчики SocketIO (connection, game) зарегистрированы.")


def create_app(config_object=None):
    """
    Фабрика приложений (Паттерн Application Factory).
    config_object перекрывает базовый конфиг (используется в тестах).
    """

    app = Flask(__name__, instance_relative_config=True)

    # 1. Загрузка конфигурации
    app.config.from_object('chess_server.config.Config')
    app.config.from_pyfile('config.py', silent=True)
    if config_object is not None:
        app.config.from_object(config_object)

    # 2. Настройка логирования
    _configure_logging(app)

    # 3. Регистрация обработчиков SocketIO (до init_app)
    _register_socketio_handlers()

    # 4. Инициализация расширений
    _init_extensions(app)

    # 5. Инициализация сервисов
    _init_services(app)

    # 6. Регистрация Blueprints
    _register_blueprints(app)

    app.logger.info("Приложение 'chess-server' создано.")
    app.logger.info(f"Путь к логам: {app.config['LOG_FILE']}")

    return app, socketio
