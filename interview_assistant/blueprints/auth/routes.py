import secrets

import requests
from flask import current_app, jsonify, redirect, request, session
from flask_login import current_user, login_required, login_user, logout_user

from . import bp
from ...extensions import db
from ...models.user import User
from ...services.google_oauth import (
    SESSION_KEY, OAuthError, authorization_url, exchange_code, fetch_userinfo,
    store_refresh_token, store_session_tokens,
)
from ...utils.decorators import extension_cors

STATE_KEY = 'oauth_state'


@bp.get("/auth/login")
def login():
    state = secrets.token_urlsafe(24)
    session[STATE_KEY] = state
    return redirect(authorization_url(state))


@bp.get("/auth/callback")
def callback():
    expected = session.pop(STATE_KEY, None)
    if not expected or request.args.get('state') != expected:
        return jsonify({'error': 'Invalid OAuth state'}), 400
    if request.args.get('error'):
        return jsonify({'error': request.args['error']}), 401
    code = request.args.get('code')
    if not code:
        return jsonify({'error': 'Missing authorization code'}), 400

    try:
        tokens = exchange_code(code)
        info = fetch_userinfo(tokens['access_token'])
    except (OAuthError, requests.RequestException) as exc:
        current_app.logger.warning('OAuth code exchange failed: %s', exc)
        return jsonify({'error': 'Sign-in failed'}), 401

    email = info.get('email')
    if not email:
        return jsonify({'error': 'Google account has no email'}), 401

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email)
        db.session.add(user)
    user.name = info.get('name') or user.name
    user.image = info.get('picture') or user.image
    db.session.commit()

    login_user(user, remember=True)
    store_session_tokens(tokens)
    store_refresh_token(email, tokens.get('refresh_token'))
    current_app.logger.info('Signed in %s', email)
    return redirect(current_app.config.get('POST_LOGIN_REDIRECT') or '/')


@bp.post("/auth/logout")
@login_required
def logout():
    session.pop(SESSION_KEY, None)
    logout_user()
    return jsonify({'success': True})


@bp.route("/api/auth/check", methods=["GET", "OPTIONS"])
@extension_cors('GET, OPTIONS')
def check():
    """Lets the extension ask whether the browser has a signed-in session."""
    if not current_user.is_authenticated:
        return jsonify({'authenticated': False, 'user': None})
    return jsonify({'authenticated': True, 'user': current_user.to_dict()})
