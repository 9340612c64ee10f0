# api/reviewers.py
"""
Reviewer roster endpoints
"""

from flask import Blueprint, request

from api.responses import api_handler, success
from middleware.security import require_auth
from services import reviewers as reviewer_service

reviewers_bp = Blueprint('reviewers', __name__)


@reviewers_bp.route('', methods=['POST'])
@require_auth
@api_handler("Reviewer addition failed")
def register_reviewer():
    data = request.get_json(silent=True) or {}
    reviewer = reviewer_service.register_reviewer(
        first_name=data.get('firstName'),
        last_name=data.get('lastName'),
        email=data.get('email'),
        affiliation=data.get('affiliation'),
    )
    return success("Reviewer added successfully", reviewer.to_dict(), 201)


@reviewers_bp.route('/bulk', methods=['POST'])
@require_auth
@api_handler("Reviewers addition failed")
def register_reviewers_bulk():
    reviewers = reviewer_service.register_reviewers_bulk(request.get_json(silent=True))
    return success("Reviewers added successfully", [reviewer.to_dict() for reviewer in reviewers], 201)


@reviewers_bp.route('', methods=['GET'])
@require_auth
@api_handler("Reviewer data retrieval failed")
def list_reviewers():
    return success("Reviewer data retrieved successfully",
                   [reviewer.to_dict() for reviewer in reviewer_service.list_reviewers()])


@reviewers_bp.route('/<reviewer_id>', methods=['DELETE'])
@require_auth
@api_handler("Reviewer deletion failed")
def remove_reviewer(reviewer_id):
    reviewer_service.remove_reviewer(reviewer_id)
    return success("Reviewer deleted successfully")
