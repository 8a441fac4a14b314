# chess_server/api/schemas.py

from marshmallow import Schema, fields, pre_load, EXCLUDE


class ActionSchema(Schema):
    """
    Конверт действия от клиента: {action, gameID?, move?}.
    Неизвестные поля отбрасываются; значение 'action' здесь не проверяется,
    неизвестные действия отсеивает обработчик соединения.
    """

    class Meta:
        unknown = EXCLUDE

    action = fields.Str(
        required=True,
        error_messages={"required": "action is required."}
    )
    game_id = fields.Str(data_key='gameID', load_default=None, allow_none=True)
    move = fields.Str(load_default=None, allow_none=True)

    @pre_load
    def strip_whitespace(self, data, **kwargs):
        if isinstance(data.get('action'), str):
            data['action'] = data['action'].strip()
        if isinstance(data.get('gameID'), str):
            data['gameID'] = data['gameID'].strip()
        return data
