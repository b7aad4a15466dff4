import hmac
from functools import wraps
from flask import current_app, jsonify, make_response, request
from flask_login import current_user

from .errors import APIError

EXTENSION_ORIGINS = ('chrome-extension://',)
MEET_ORIGIN = 'https://meet.google.com'


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'error': 'Unauthorized'}), 401
        if not current_user.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapped


def _is_extension_origin(origin):
    return bool(origin) and (origin.startswith(EXTENSION_ORIGINS) or origin == MEET_ORIGIN)


def extension_cors(methods='GET, POST, OPTIONS'):
    """Allow credentialed calls from the Chrome extension and Meet content scripts.

    Answers OPTIONS preflight itself, so the route must list OPTIONS.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            origin = request.headers.get('Origin', '')
            if request.method == 'OPTIONS':
                resp = make_response('', 204)
                resp.headers['Access-Control-Allow-Methods'] = methods
                resp.headers['Access-Control-Allow-Headers'] = 'Content-Type'
            else:
                try:
                    resp = make_response(view(*args, **kwargs))
                except APIError as exc:
                    resp = make_response(exc.to_response())
            if _is_extension_origin(origin):
                resp.headers['Access-Control-Allow-Origin'] = origin
                resp.headers['Access-Control-Allow-Credentials'] = 'true'
            return resp
        return wrapped
    return decorator


def cron_secret_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        secret = current_app.config.get('CRON_SECRET')
        header = request.headers.get('Authorization', '')
        if not secret or not hmac.compare_digest(header, f'Bearer {secret}'):
            return jsonify({'error': 'Unauthorized'}), 401
        return view(*args, **kwargs)
    return wrapped
