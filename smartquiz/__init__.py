"""
SmartQuiz Application Factory
"""
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def create_app(config_name='default', store=None, openai_client=None):
    """
    Build the Flask app.

    store: a QuizStore to serve from; built from QUIZ_STORE when omitted.
    openai_client: an OpenAI-compatible client; built per request from
    OPENAI_API_KEY when omitted.
    """
    from smartquiz.utils.config import get_config
    from smartquiz.store import SqlQuizStore, build_store

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.getLogger('smartquiz').setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)

    if store is None:
        store = build_store(app.config['QUIZ_STORE'])
    app.extensions['quiz_store'] = store
    app.extensions['openai_client'] = openai_client

    # Register blueprints
    from smartquiz.api import api_bp
    app.register_blueprint(api_bp)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        from smartquiz.services.openai_service import client_ready, model_name

        openai_ok, openai_msg = client_ready(app.config.get('OPENAI_API_KEY'))
        store_status = "ok"
        if isinstance(store, SqlQuizStore):
            try:
                from sqlalchemy import text
                db.session.execute(text('SELECT 1'))
            except Exception as e:
                app.logger.warning(f'Database health check failed: {e}')
                store_status = f"error: {e}"

        return jsonify({
            "status": "ok" if store_status == "ok" else "degraded",
            "version": app.config['APP_VERSION'],
            "store": store_status,
            "openai_ready": openai_ok,
            "openai_message": openai_msg,
            "model": app.config.get('OPENAI_MODEL') or model_name(),
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config['APP_VERSION'],
            "build_time": app.config['BUILD_TIME'],
            "git_commit": app.config['GIT_COMMIT'],
            "features": {
                "slide_fallback": app.config['FEATURE_SLIDE_FALLBACK'],
                "strict_answers": app.config['FEATURE_STRICT_ANSWERS'],
                "pdf_export": True,
            }
        })

    if isinstance(store, SqlQuizStore):
        with app.app_context():
            db.create_all()
            app.logger.info('Quiz tables ready')

    return app
