from flask import Blueprint, current_app, jsonify

bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    """
    Проверка живости сервера и число активных игр.
    """
    return jsonify({
        'status': 'ok',
        'games': current_app.game_registry.count()
    })
