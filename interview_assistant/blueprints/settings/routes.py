from flask import jsonify
from flask_login import current_user, login_required

from . import bp
from ...extensions import db
from ...models.user_setting import UserSetting
from ...utils.validation import SettingsUpdate, validate_body

NOT_NULL = ('auto_poll_enabled', 'poll_interval_minutes')


@bp.get("")
@login_required
def get_settings():
    s = UserSetting.for_user(current_user.email)
    if s is None:
        return jsonify(UserSetting.DEFAULTS)
    return jsonify(s.to_dict())


@bp.post("")
@login_required
def update_settings():
    body = validate_body(SettingsUpdate)
    s = UserSetting.for_user(current_user.email, create=True)
    # only the fields the client actually sent
    for field in body.model_fields_set:
        value = getattr(body, field)
        if value is None and field in NOT_NULL:
            continue
        setattr(s, field, value)
    db.session.commit()
    return jsonify({'success': True})
