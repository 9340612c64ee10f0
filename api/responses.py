# api/responses.py
"""
Uniform response envelope: {success, message, data?, error?}
"""

import logging
from functools import wraps

from flask import jsonify
from werkzeug.exceptions import HTTPException

from core.database_models import db
from core.errors import JournalServiceError

logger = logging.getLogger(__name__)


def success(message, data=None, status=200):
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def failure(message, status=400, error=None, data=None):
    body = {'success': False, 'message': message}
    if data is not None:
        body['data'] = data
    if error is not None:
        body['error'] = error
    return jsonify(body), status


def api_handler(failure_message):
    """
    Convert every error raised by a view into a failure envelope

    Service errors keep their status code; anything else is logged with a
    traceback and reported as 500. The database session is rolled back in
    both cases.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except JournalServiceError as e:
                db.session.rollback()
                logger.warning(f"{f.__name__} failed: {e.__class__.__name__}: {e.message}")
                if e.expose_message:
                    return failure(e.message, e.status_code, error=e.details)
                error = {'type': e.__class__.__name__, 'message': e.message}
                if e.details is not None:
                    error['details'] = e.details
                return failure(failure_message, e.status_code, error=error)
            except HTTPException:
                db.session.rollback()
                raise
            except Exception as e:
                db.session.rollback()
                logger.error(f"{f.__name__} failed unexpectedly: {str(e)}", exc_info=True)
                return failure(failure_message, 500, error=str(e))
        return decorated_function
    return decorator
