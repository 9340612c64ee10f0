# api/journals.py
"""
Journal and editor management endpoints
"""

from flask import Blueprint, request

from api.responses import api_handler, success
from middleware.security import require_auth
from services import journals as journal_service

journals_bp = Blueprint('journals', __name__)


@journals_bp.route('', methods=['POST'])
@require_auth
@api_handler("Journal addition failed")
def create_journal():
    data = request.get_json(silent=True) or {}
    journal = journal_service.create_journal(data.get('title'), data.get('description'))
    return success("Journal added successfully", journal.to_dict(), 201)


@journals_bp.route('', methods=['GET'])
@require_auth
@api_handler("Journal data retrieval failed")
def list_journals():
    return success("Journal data retrieved successfully", journal_service.list_journals())


@journals_bp.route('/<journal_id>', methods=['DELETE'])
@require_auth
@api_handler("Journal deletion failed")
def delete_journal(journal_id):
    journal_service.delete_journal(journal_id)
    return success("Journal deleted successfully")


@journals_bp.route('/editor', methods=['POST'])
@require_auth
@api_handler("Editor addition failed")
def assign_editor():
    """Provision an editor; the response carries the one-time password"""
    data = request.get_json(silent=True) or {}
    credentials = journal_service.assign_editor(
        journal_id=data.get('journalId'),
        first_name=data.get('firstName'),
        middle_name=data.get('middleName'),
        last_name=data.get('lastName'),
        email=data.get('email'),
        phone_number=data.get('phoneNumber'),
        gender=data.get('gender'),
    )
    return success("Editor added successfully", credentials, 201)


@journals_bp.route('/<journal_id>/editor', methods=['DELETE'])
@require_auth
@api_handler("Editor removal failed")
def remove_editor(journal_id):
    journal_service.remove_editor(journal_id)
    return success("Editor removed successfully")
