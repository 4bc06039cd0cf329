from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress
import logging
import os

# Load environment variables early so config is available for blueprint creation
load_dotenv()

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def create_app(overrides: dict | None = None) -> Flask:
    """
    Application factory for the Flask app.
    Reads configuration from the environment, applies ``overrides`` on top,
    wires the extensions and registers blueprints.
    """
    from academy.config import Config

    config = Config()
    config.validate()

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    app = Flask(
        __name__,
        template_folder=os.path.join(project_root, "templates"),
        static_folder=os.path.join(project_root, "static"),
    )
    app.config.from_mapping(config.to_flask())
    if overrides:
        app.config.from_mapping(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Connection pooling only applies to server databases
    if not app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
        })

    app.config["COMPRESS_MIMETYPES"] = [
        'text/html', 'text/css', 'application/json', 'application/javascript'
    ]
    app.config["COMPRESS_MIN_SIZE"] = 500

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    login_manager.login_view = 'pages.login_page'
    compress.init_app(app)

    from academy.common.storage import init_storage
    init_storage(app)

    from academy.security import init_security
    init_security(app)

    from academy.common.sanitize import sanitize_html
    app.jinja_env.filters["sanitize"] = sanitize_html

    @login_manager.user_loader
    def load_user(user_id):
        from academy.auth.models import Profile
        return db.session.get(Profile, str(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Not authenticated'}), 401
        from flask import redirect, url_for
        return redirect(url_for('pages.login_page', redirectedFrom=request.path))

    # API routes answer with JSON error bodies, pages keep the default handlers
    @app.errorhandler(404)
    def handle_404(e):
        app.logger.warning(f"404 error: {request.method} {request.path}")
        if request.path.startswith('/api/'):
            return jsonify({'error': f'Route not found: {request.method} {request.path}'}), 404
        return e

    @app.errorhandler(405)
    def handle_405(e):
        app.logger.warning(f"405 error: {request.method} {request.path}")
        if request.path.startswith('/api/'):
            return jsonify({'error': f'Method not allowed: {request.method} {request.path}'}), 405
        return e

    @app.errorhandler(500)
    def handle_500(e):
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Internal server error'}), 500
        return e

    # Register blueprints
    from academy.auth import auth_bp
    app.register_blueprint(auth_bp)

    from academy.catalog import catalog_bp
    app.register_blueprint(catalog_bp)

    from academy.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    from academy.certificates import certificates_bp
    app.register_blueprint(certificates_bp)

    from academy.uploads import uploads_bp
    app.register_blueprint(uploads_bp)

    from academy.pages import pages_bp
    app.register_blueprint(pages_bp)

    # Create tables if they do not exist
    with app.app_context():
        from academy.auth import models as _auth_models  # noqa: F401
        from academy.catalog import models as _catalog_models  # noqa: F401
        from academy.quiz import models as _quiz_models  # noqa: F401
        from academy.certificates import models as _certificate_models  # noqa: F401
        db.create_all()

    return app
