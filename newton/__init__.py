import logging
import os
from flask import Flask, jsonify
from config import Config
from newton.extensions import db, migrate, login_manager, limiter


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Ensure directories exist
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # Register blueprints
    from newton.routes.auth import auth_bp
    from newton.routes.notes import notes_bp
    from newton.routes.upload import upload_bp
    from newton.routes.quiz import quiz_bp
    from newton.routes.flashcards import flashcards_bp
    from newton.routes.study_sessions import study_bp
    from newton.routes.friends import friends_bp
    from newton.routes.rooms import rooms_bp
    from newton.routes.subscription import subscription_bp
    from newton.routes.whop import whop_bp
    from newton.routes.loops import loops_bp
    from newton.routes.user import user_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(notes_bp)
    app.register_blueprint(upload_bp)
    app.register_blueprint(quiz_bp)
    app.register_blueprint(flashcards_bp)
    app.register_blueprint(study_bp)
    app.register_blueprint(friends_bp)
    app.register_blueprint(rooms_bp)
    app.register_blueprint(subscription_bp)
    app.register_blueprint(whop_bp)
    app.register_blueprint(loops_bp)
    app.register_blueprint(user_bp)

    # User loader
    from newton.models.user import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized"}), 401

    _register_error_handlers(app)

    # Create tables on first run
    with app.app_context():
        from newton.models import user, note, upload, flashcard, study, friendship, room, subscription  # noqa
        db.create_all()

    return app


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"error": "File size exceeds 50MB limit"}), 413

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({
            "error": "Rate limit exceeded",
            "message": f"Too many requests: {e.description}. Please try again later.",
        }), 429

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error(f"Unhandled error: {e}")
        return jsonify({"error": "Internal server error"}), 500
