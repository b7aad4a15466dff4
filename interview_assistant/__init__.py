import logging

from flask import Flask, jsonify, request
from flask_migrate import Migrate
from .extensions import db, login_manager, rq

migrate = Migrate()


def create_app(config_object='config.Config'):
    """App factory.

    `config_object` is anything `app.config.from_object` accepts; tests pass
    their own class with an in-memory database.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db, directory='alembic')
    login_manager.init_app(app)
    rq.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    from .utils.errors import register_error_handlers
    register_error_handlers(app)

    from .blueprints.auth import bp as auth_bp
    app.register_blueprint(auth_bp)

    from .blueprints.interviews import bp as interviews_bp
    app.register_blueprint(interviews_bp, url_prefix="/api/interviews")

    from .blueprints.drive import bp as drive_bp
    app.register_blueprint(drive_bp, url_prefix="/api")

    from .blueprints.lever import bp as lever_bp
    app.register_blueprint(lever_bp, url_prefix="/api/lever")

    from .blueprints.settings import bp as settings_bp
    app.register_blueprint(settings_bp, url_prefix="/api/settings")

    from .blueprints.conversations import bp as conversations_bp
    app.register_blueprint(conversations_bp, url_prefix="/api/conversations")

    from .blueprints.candidates import bp as candidates_bp
    app.register_blueprint(candidates_bp, url_prefix="/api/candidates")

    from .api.analyze import bp as analyze_bp
    app.register_blueprint(analyze_bp)

    from .api.transcribe import bp as transcribe_bp
    app.register_blueprint(transcribe_bp)

    @app.get('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.after_request
    def log_api_errors(resp):
        if resp.status_code >= 500 and request.path.startswith('/api/'):
            app.logger.warning('%s %s -> %s', request.method, request.path, resp.status_code)
        return resp

    return app
