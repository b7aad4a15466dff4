from datetime import datetime, timedelta

from flask import current_app

from ..models.user_setting import UserSetting
from ..services.drive import DriveClient
from ..services.google_oauth import access_token_for_email
from ..services.ingest import poll_folder


def due_settings(now=None):
    """Users with auto poll on, a folder and stored credentials whose interval has elapsed."""
    now = now or datetime.utcnow()
    rows = UserSetting.query.filter(
        UserSetting.auto_poll_enabled.is_(True),
        UserSetting.drive_folder_id.isnot(None),
        UserSetting.encrypted_refresh_token.isnot(None),
    ).all()
    due = []
    for s in rows:
        interval = timedelta(minutes=s.poll_interval_minutes or 15)
        if s.last_poll_time is None or now - s.last_poll_time >= interval:
            due.append(s)
    return due


def poll_user(user_email: str, folder_id: str):
    access_token = access_token_for_email(user_email)
    drive = DriveClient.from_token(access_token)
    return poll_folder(drive, folder_id, user_email, fast_mode=True, include_subfolders=True)


def poll_due_users():
    settings = due_settings()
    if not settings:
        return {'message': 'No users to poll', 'results': []}

    results = []
    for s in settings:
        try:
            result = poll_user(s.user_email, s.drive_folder_id)
            results.append({'email': s.user_email, **result})
        except Exception as exc:
            current_app.logger.exception('[Cron Poll] %s failed', s.user_email)
            results.append({'email': s.user_email, 'error': str(exc) or 'Unknown error'})

    return {'message': f'Polled {len(settings)} user(s)', 'results': results}
