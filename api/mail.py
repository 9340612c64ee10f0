# api/mail.py
"""Notification email endpoint"""

from flask import Blueprint, request

from api.responses import api_handler, success
from middleware.security import limiter, require_auth
from services.mailer import send_mail

mail_bp = Blueprint('mail', __name__)


@mail_bp.route('', methods=['POST'])
@require_auth
@limiter.limit("50 per minute")
@api_handler("Mail sending failed")
def send():
    data = request.get_json(silent=True) or {}
    info = send_mail(
        from_label=data.get('mailFrom'),
        to_address=data.get('mailTo'),
        subject=data.get('mailSubject'),
        html_body=data.get('mailHtml'),
    )
    return success("Mail sent successfully", info)
