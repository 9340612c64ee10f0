# api/auth.py
"""
Session Authentication API
"""

from flask import Blueprint, g, request, session
from sqlalchemy import or_
from datetime import datetime, timedelta

from api.responses import api_handler, failure, success
from core.database_models import db, Auth
from core.errors import ValidationError
from core.security_manager import security_manager
from middleware.security import limiter, require_auth

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute")
@api_handler("Login failed")
def login():
    """
    Log in with a username or email and password
    """
    data = request.get_json(silent=True) or {}
    identifier = (data.get('userName') or data.get('email') or '').strip()
    password = data.get('password', '')

    if not identifier or not password:
        security_manager.log_security_event('login_failed', {
            'reason': 'missing_credentials',
            'identifier': identifier
        })
        raise ValidationError('Username and password required')

    user = db.session.query(Auth).filter(
        or_(Auth.user_name == identifier, Auth.email == identifier.lower())
    ).first()
    if not user or not security_manager.verify_password(password, user.password_hash):
        security_manager.log_security_event('login_failed', {
            'reason': 'invalid_credentials',
            'identifier': identifier
        })
        return failure('Invalid credentials', 401)

    session.clear()
    session.update({
        'user_id': user.id,
        'login_time': datetime.utcnow().isoformat(),
        'last_activity': datetime.utcnow().isoformat()
    })
    session.permanent = True

    security_manager.log_security_event('login_success', {'user_id': user.id})

    return success('Logged in successfully', {
        'user': user.to_dict(),
        'sessionExpires': (datetime.utcnow() + timedelta(hours=8)).isoformat()
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Clear the session"""
    security_manager.log_security_event('logout', {'user_id': session.get('user_id')})
    session.clear()
    return success('Logged out successfully')


@auth_bp.route('/me', methods=['GET'])
@require_auth
def me():
    return success('User data retrieved successfully', g.current_user.to_dict())
