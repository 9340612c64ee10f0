# app.py
"""
Flask Application Factory for the Journal Management Backend

This application factory wires together:
- SQLAlchemy entity store with migrations
- Celery (Redis broker) for archive expiry
- Rate limiting, CORS and security headers
- Uniform JSON error envelopes and request logging
- Health endpoints for monitoring and load balancing
"""

import os
import logging
import logging.handlers
import time
from datetime import datetime
from typing import Optional

# Flask and extensions
from flask import Flask, request, jsonify, g
from flask_cors import CORS
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix

# Database and caching
import redis
from sqlalchemy import event, text

from api.archives import archives_bp
from api.articles import articles_bp
from api.auth import auth_bp
from api.journals import journals_bp
from api.mail import mail_bp
from api.reviewers import reviewers_bp
from config import DevelopmentConfig, ProductionConfig, TestingConfig
from core.database_models import db
from core.security_manager import init_security_manager
from middleware.security import limiter, security_headers
from tasks.archive_cleanup import celery_app, configure_worker

CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def setup_logging(app: Flask) -> None:
    """
    Configure application logging

    - Console output for containers and development
    - systemd journal when the ``systemd`` package is installed
    - Rotating file log when LOG_FILE is set
    """
    # Remove default Flask handlers to avoid duplicate logs
    app.logger.handlers.clear()

    journal_formatter = logging.Formatter(
        fmt='%(name)s[%(process)d]: %(levelname)s %(message)s'
    )
    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(funcName)-15s:%(lineno)-4d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper(), logging.INFO)
    app.logger.setLevel(log_level)

    # Module loggers (services, api, core) share the application's handlers
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(detailed_formatter)
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    if not app.testing:
        try:
            import systemd.journal
            journal_handler = systemd.journal.JournalHandler()
            journal_handler.setFormatter(journal_formatter)
            journal_handler.setLevel(log_level)
            handlers.append(journal_handler)
        except ImportError:
            app.logger.debug("systemd.journal not available, logging to console only")

    if app.config.get('LOG_FILE'):
        file_handler = logging.handlers.RotatingFileHandler(
            app.config['LOG_FILE'],
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(detailed_formatter)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        app.logger.addHandler(handler)

    for name in ('api', 'core', 'middleware', 'services', 'tasks'):
        package_logger = logging.getLogger(name)
        package_logger.handlers = list(handlers)
        package_logger.setLevel(log_level)
        package_logger.propagate = False

    # Suppress verbose third-party logs in production
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)


def create_redis_client(app: Flask) -> redis.Redis:
    """Redis client used by health checks; connections open lazily"""
    return redis.Redis(
        host=app.config.get('REDIS_HOST', 'localhost'),
        port=app.config.get('REDIS_PORT', 6379),
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )


def configure_database(app: Flask) -> None:
    """
    Configure SQLAlchemy and slow query logging
    """
    database_url = app.config.get('DATABASE_URL', 'sqlite:///journals.db')

    engine_options = {
        'pool_pre_ping': True,  # Verify connections before use
        'echo': False,
    }

    # Connection pooling parameters for server databases
    if not database_url.startswith('sqlite'):
        engine_options.update({
            'pool_size': app.config.get('DB_POOL_SIZE', 20),
            'max_overflow': app.config.get('DB_MAX_OVERFLOW', 30),
            'pool_recycle': 3600,   # Recycle connections every hour
        })

    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    db.init_app(app)
    Migrate(app, db)

    threshold = app.config.get('SLOW_QUERY_THRESHOLD', 1.0)

    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "before_cursor_execute")
        def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault('query_start_time', []).append(time.perf_counter())

        @event.listens_for(engine, "after_cursor_execute")
        def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            total = time.perf_counter() - conn.info['query_start_time'].pop()
            if total > threshold:
                app.logger.warning(f"Slow query ({total:.2f}s): {statement[:100]}...")

    app.logger.info(f"Database configured: {database_url.split('@')[-1] if '@' in database_url else database_url}")


def configure_celery(app: Flask) -> None:
    """
    Point Celery at the configured Redis broker and register the archive purge
    """
    celery_app.conf.task_always_eager = app.config.get('CELERY_TASK_ALWAYS_EAGER', False)
    configure_worker(
        app.config['CELERY_BROKER_URL'],
        app.config['CELERY_RESULT_BACKEND'],
        app.config['ARCHIVE_FOLDER'],
        app.config.get('ARCHIVE_TTL_SECONDS', 60),
        app.config.get('ARCHIVE_PURGE_INTERVAL', 300.0),
    )
    app.celery = celery_app
    app.logger.info("Celery configured with Redis broker")


def configure_security(app: Flask) -> None:
    """
    Configure credentials, rate limiting and CORS
    """
    init_security_manager(app)

    if not app.config.get('RATELIMIT_STORAGE_URI'):
        app.config['RATELIMIT_STORAGE_URI'] = (
            f"redis://{app.config.get('REDIS_HOST', 'localhost')}:{app.config.get('REDIS_PORT', 6379)}/3"
        )
    limiter.init_app(app)

    # Configure CORS for API endpoints
    CORS(app,
         origins=app.config.get('CORS_ORIGINS', ['http://localhost:3000']),
         supports_credentials=True,
         allow_headers=['Content-Type', 'Authorization'])

    app.logger.info("Security features configured")


def register_blueprints(app: Flask) -> None:
    """
    Register all application blueprints with proper URL prefixes
    """
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(articles_bp, url_prefix='/api/articles')
    app.register_blueprint(journals_bp, url_prefix='/api/journals')
    app.register_blueprint(reviewers_bp, url_prefix='/api/reviewers')
    app.register_blueprint(mail_bp, url_prefix='/api/mail')
    app.register_blueprint(archives_bp, url_prefix='/api/archives')

    app.logger.info("Application blueprints registered")


def configure_error_handlers(app: Flask) -> None:
    """
    Return the response envelope for errors raised outside the views
    """
    def envelope(message, status_code):
        return jsonify({'success': False, 'message': message}), status_code

    @app.errorhandler(400)
    def bad_request(error):
        app.logger.warning(f"Bad request from {request.remote_addr}: {error}")
        return envelope('Invalid request format or parameters', 400)

    @app.errorhandler(401)
    def unauthorized(error):
        return envelope('Authentication required', 401)

    @app.errorhandler(404)
    def not_found(error):
        return envelope('The requested resource was not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return envelope('Method not allowed', 405)

    @app.errorhandler(413)
    def payload_too_large(error):
        return envelope('Uploaded file is too large', 413)

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        app.logger.warning(f"Rate limit exceeded for {request.remote_addr}")
        return envelope('Too many requests. Please try again later.', 429)

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal server error: {error}", exc_info=True)
        return envelope('An unexpected error occurred', 500)


def configure_health_checks(app: Flask, redis_client: redis.Redis) -> None:
    """
    Configure health check endpoints for monitoring and load balancing
    """
    @app.route('/health')
    def health_check():
        """Basic health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.utcnow().isoformat(),
            'version': app.config.get('VERSION', '1.0.0')
        })

    @app.route('/health/detailed')
    def detailed_health_check():
        """Detailed health check with component status"""
        health_status = {
            'status': 'healthy',
            'timestamp': datetime.utcnow().isoformat(),
            'components': {}
        }

        try:
            db.session.execute(text('SELECT 1'))
            health_status['components']['database'] = 'healthy'
        except Exception as e:
            db.session.rollback()
            health_status['components']['database'] = f'unhealthy: {str(e)}'
            health_status['status'] = 'unhealthy'

        try:
            redis_client.ping()
            health_status['components']['redis'] = 'healthy'
        except redis.RedisError as e:
            health_status['components']['redis'] = f'unhealthy: {str(e)}'
            health_status['status'] = 'degraded'

        status_code = 200 if health_status['status'] == 'healthy' else 503
        return jsonify(health_status), status_code


def configure_request_middleware(app: Flask) -> None:
    """
    Configure request/response middleware for security and monitoring
    """
    @app.before_request
    def before_request():
        g.start_time = time.perf_counter()

    @app.after_request
    def after_request(response):
        response = security_headers(response)

        if hasattr(g, 'start_time'):
            duration = (time.perf_counter() - g.start_time) * 1000
            if duration > app.config.get('SLOW_REQUEST_THRESHOLD', 1000):
                app.logger.warning(f"Slow request ({duration:.0f}ms): {request.method} {request.path}")

        return response


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Flask application factory

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__, instance_relative_config=True)

    config_name = config_name or os.environ.get('FLASK_ENV', 'production')
    app.config.from_object(CONFIGS.get(config_name, ProductionConfig))

    # Configure proxy handling for production deployment behind nginx
    if config_name == 'production':
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    setup_logging(app)
    app.logger.info(f"Starting Journal backend in {config_name} mode")

    redis_client = create_redis_client(app)
    app.redis_client = redis_client

    configure_database(app)
    configure_celery(app)
    configure_security(app)
    register_blueprints(app)
    configure_error_handlers(app)
    configure_health_checks(app, redis_client)
    configure_request_middleware(app)

    # Create database tables (in production, use migrations instead)
    if config_name == 'development':
        with app.app_context():
            db.create_all()
            app.logger.info("Database tables created (development mode)")

    app.logger.info("Flask application factory completed successfully")
    return app


if __name__ == '__main__':
    # Development server
    create_app('development').run(
        host='0.0.0.0',
        port=5000,
        debug=True,
        use_reloader=True
    )
