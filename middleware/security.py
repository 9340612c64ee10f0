# middleware/security.py
"""
Security Middleware for Request Processing
"""

from flask import current_app, g, jsonify, request, session
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from functools import wraps
import logging
from datetime import datetime

from core.database_models import db, Auth
from core.security_manager import security_manager

logger = logging.getLogger(__name__)

# Rate limiter; limits and storage come from the RATELIMIT_* settings
limiter = Limiter(key_func=get_remote_address)


def security_headers(response):
    """Add configured security headers to all responses"""
    for header, value in current_app.config.get('SECURITY_HEADERS', {}).items():
        response.headers.setdefault(header, value)
    return response


def require_auth(f):
    """Decorator to require an authenticated session; exposes g.current_user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = session.get('user_id')
        user = db.session.get(Auth, user_id) if user_id else None
        if user is None:
            security_manager.log_security_event('unauthorized_access_attempt', {
                'endpoint': request.endpoint,
                'method': request.method
            })
            session.pop('user_id', None)
            return jsonify({'success': False, 'message': 'Authentication required'}), 401

        g.current_user = user

        # Update last activity
        session['last_activity'] = datetime.utcnow().isoformat()

        return f(*args, **kwargs)
    return decorated_function
