# core/security_manager.py
"""
Security Manager for the Journal Management Backend
Implements:
- Editor credential generation (one-time password and username)
- Password hashing and verification
- Audit logging of security-relevant events
"""

import base64
import hmac
import json
import logging
import random
import secrets
import string
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from flask import has_request_context, request, session

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class SecurityAuditLog:
    """Security audit log entry"""
    timestamp: str
    event_type: str
    user_id: Optional[str]
    source_ip: str
    resource: str
    action: str
    details: Dict[str, Any]


class SecurityManager:
    """
    Credential and audit helper shared by the auth and journal modules
    """

    PASSWORD_ALPHABET = string.ascii_uppercase + string.digits
    PBKDF2_ITERATIONS = 200000

    def __init__(self, password_length: int = 10, username_attempts: int = 10):
        self.password_length = password_length
        self.username_attempts = username_attempts

    def generate_password(self) -> str:
        """Random uppercase alphanumeric password handed out once to new editors"""
        return ''.join(secrets.choice(self.PASSWORD_ALPHABET) for _ in range(self.password_length))

    def generate_username(self, first_name: str, is_taken: Callable[[str], bool]) -> str:
        """
        Build a username from the lowercased first name plus a random number

        Args:
            first_name: Editor's first name
            is_taken: Callback telling whether a candidate already exists

        Returns:
            A username for which ``is_taken`` returned False
        """
        base = ''.join(ch for ch in first_name.lower() if ch.isalnum()) or 'user'

        for _ in range(self.username_attempts):
            candidate = f"{base}{random.randint(0, 999)}"
            if not is_taken(candidate):
                return candidate

        # Three digits exhausted, fall back to a wider suffix
        while True:
            candidate = f"{base}{secrets.token_hex(4)}"
            if not is_taken(candidate):
                return candidate

    def hash_password(self, password: str, salt: Optional[str] = None) -> str:
        """
        Hash password with secure salt

        Returns:
            ``salt$hash`` string suitable for storage
        """
        if salt is None:
            salt = secrets.token_hex(16)

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=self.PBKDF2_ITERATIONS,
            backend=default_backend()
        )

        hashed = base64.b64encode(kdf.derive(password.encode())).decode()
        return f"{salt}${hashed}"

    def verify_password(self, password: str, stored: str) -> bool:
        """Verify password against a stored ``salt$hash`` value"""
        if not password or not stored or '$' not in stored:
            return False
        salt, _ = stored.split('$', 1)
        return hmac.compare_digest(stored, self.hash_password(password, salt))

    def log_security_event(self, event_type: str, details: Dict[str, Any] = None):
        """
        Log security event for audit trail

        Args:
            event_type: Type of security event
            details: Additional event details
        """
        in_request = has_request_context()
        log_entry = SecurityAuditLog(
            timestamp=datetime.utcnow().isoformat(),
            event_type=event_type,
            user_id=session.get('user_id') if in_request else None,
            source_ip=(request.remote_addr or 'unknown') if in_request else 'system',
            resource=(request.endpoint or 'unknown') if in_request else 'system',
            action=request.method if in_request else 'system',
            details=details or {}
        )
        logger.info(f"Security event: {json.dumps(asdict(log_entry), default=str)}")


# Global security manager instance
security_manager = SecurityManager()


def init_security_manager(app) -> SecurityManager:
    """Configure the global security manager from application config"""
    security_manager.password_length = app.config.get('EDITOR_PASSWORD_LENGTH', 10)
    security_manager.username_attempts = app.config.get('USERNAME_MAX_ATTEMPTS', 10)
    return security_manager
