# chess_server/extensions.py
"""
Инициализация расширений Flask.

Экземпляр SocketIO создается здесь, без приложения, чтобы обработчики
могли регистрироваться декораторами без циклических импортов;
к приложению он привязывается в фабрике (create_app).
"""

from flask_socketio import SocketIO

# SocketIO для постоянных двунаправленных соединений с клиентами.
# Источники и параметры ping уточняются в init_app из конфига.
socketio = SocketIO(cors_allowed_origins="*")
