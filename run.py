import eventlet
eventlet.monkey_patch()

# 2. Обычные импорты
import argparse
from chess_server import create_app

print("[run.py] Eventlet monkey-patch применен.")

# 3. Создаем приложение
app, socketio = create_app()

if __name__ == '__main__':

    # 4. Настраиваем парсер аргументов
    parser = argparse.ArgumentParser(description='Запуск шахматного Flask-SocketIO сервера.')

    parser.add_argument(
        '-e', '--env',
        default='local',
        choices=['local', 'prod'],
        help='Режим запуска: local (для разработки) или prod (для боевого сервера). По умолчанию: local.'
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=app.config['PORT'],
        help='Порт сервера. По умолчанию: $PORT или 8080.'
    )

    # 5. Считываем аргументы
    args = parser.parse_args()

    # 6. Выбираем, как запускать сервер
    if args.env == 'prod':
        print(f"[run.py] Запуск в режиме PRODUCTION (prod) на 0.0.0.0:{args.port}...")

        socketio.run(app,
                     host='0.0.0.0',
                     port=args.port,
                     debug=False
                    )

    else:
        print(f"[run.py] Запуск в режиме LOCAL (dev) на 127.0.0.1:{args.port}...")
        print("[run.py] Включен режим отладки (debug=True).")

        socketio.run(app,
                     host='127.0.0.1',
                     port=args.port,
                     debug=True,
                     allow_unsafe_werkzeug=True
                    )
