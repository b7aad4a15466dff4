"""Google sign-in and token management.

The web session keeps the user's current access token; the refresh token is
also stored encrypted in ``user_settings`` so the cron poller can act for the
user while they are signed out.
"""
import time
from urllib.parse import urlencode

import requests
from flask import current_app, session

from ..extensions import db
from ..models.user_setting import UserSetting
from ..utils.errors import APIError
from .crypto import decrypt_token, encrypt_token

AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_URL = 'https://oauth2.googleapis.com/token'
USERINFO_URL = 'https://openidconnect.googleapis.com/v1/userinfo'

SESSION_KEY = 'google_token'
REFRESH_MARGIN_SECONDS = 5 * 60


class OAuthError(Exception):
    pass


def authorization_url(state: str) -> str:
    cfg = current_app.config
    params = {
        'client_id': cfg.get('GOOGLE_CLIENT_ID'),
        'redirect_uri': cfg.get('GOOGLE_REDIRECT_URI'),
        'response_type': 'code',
        'scope': cfg.get('GOOGLE_SCOPES'),
        'access_type': 'offline',
        'prompt': 'consent',
        'include_granted_scopes': 'true',
        'state': state,
    }
    return f'{AUTH_URL}?{urlencode(params)}'


def _token_request(data: dict) -> dict:
    cfg = current_app.config
    payload = {
        'client_id': cfg.get('GOOGLE_CLIENT_ID'),
        'client_secret': cfg.get('GOOGLE_CLIENT_SECRET'),
    }
    payload.update(data)
    r = requests.post(TOKEN_URL, data=payload, timeout=15)
    body = r.json() if r.content else {}
    if r.status_code != 200:
        raise OAuthError(body.get('error') or f'token endpoint returned {r.status_code}')
    return body


def _with_expiry(tokens: dict) -> dict:
    tokens = dict(tokens)
    tokens['expires_at'] = int(time.time()) + int(tokens.get('expires_in', 3600))
    return tokens


def exchange_code(code: str) -> dict:
    return _with_expiry(_token_request({
        'code': code,
        'grant_type': 'authorization_code',
        'redirect_uri': current_app.config.get('GOOGLE_REDIRECT_URI'),
    }))


def refresh_access_token(refresh_token: str) -> dict:
    tokens = _with_expiry(_token_request({
        'grant_type': 'refresh_token',
        'refresh_token': refresh_token,
    }))
    # Google omits refresh_token on refresh unless it rotated
    tokens.setdefault('refresh_token', refresh_token)
    return tokens


def fetch_userinfo(access_token: str) -> dict:
    r = requests.get(USERINFO_URL, headers={'Authorization': f'Bearer {access_token}'}, timeout=15)
    r.raise_for_status()
    return r.json()


def store_session_tokens(tokens: dict):
    session[SESSION_KEY] = {
        'access_token': tokens.get('access_token'),
        'refresh_token': tokens.get('refresh_token'),
        'expires_at': tokens.get('expires_at'),
    }


def store_refresh_token(email: str, refresh_token: str):
    if not refresh_token:
        return
    s = UserSetting.for_user(email, create=True)
    s.encrypted_refresh_token = encrypt_token(refresh_token)
    db.session.commit()


def stored_refresh_token(email: str):
    s = UserSetting.for_user(email)
    if s is None or not s.encrypted_refresh_token:
        return None
    try:
        return decrypt_token(s.encrypted_refresh_token)
    except Exception:
        current_app.logger.warning('Could not decrypt stored refresh token for %s', email, exc_info=True)
        return None


def access_token_for_email(email: str) -> str:
    """Fresh access token from the stored refresh token (background jobs)."""
    refresh = stored_refresh_token(email)
    if not refresh:
        raise APIError('No stored Google credentials', 401)
    try:
        tokens = refresh_access_token(refresh)
    except OAuthError as exc:
        raise APIError('Authentication expired. Please sign in again.', 401) from exc
    if tokens.get('refresh_token') != refresh:
        store_refresh_token(email, tokens['refresh_token'])
    return tokens['access_token']


def get_access_token(user) -> str:
    """Access token for the current request, refreshing when close to expiry."""
    saved = session.get(SESSION_KEY) or {}
    expires_at = saved.get('expires_at') or 0
    if saved.get('access_token') and time.time() < expires_at - REFRESH_MARGIN_SECONDS:
        return saved['access_token']

    refresh = saved.get('refresh_token') or stored_refresh_token(user.email)
    if not refresh:
        raise APIError('No Drive access. Please sign out and sign in again.', 401)
    try:
        tokens = refresh_access_token(refresh)
    except OAuthError as exc:
        current_app.logger.warning('Token refresh failed for %s: %s', user.email, exc)
        session.pop(SESSION_KEY, None)
        raise APIError('Authentication expired. Please sign in again.', 401) from exc

    store_session_tokens(tokens)
    return tokens['access_token']
