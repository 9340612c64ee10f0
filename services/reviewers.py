# services/reviewers.py
"""
Reviewer roster and the isReviewer flag on identity records
"""

import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from core.database_models import db, Auth, Reviewer
from core.errors import ConflictError, NotFoundError, ValidationError
from core.validation import normalize_email, require_fields

logger = logging.getLogger(__name__)


def _set_reviewer_flag(emails: Iterable[str], value: bool) -> int:
    """Flip isReviewer on the Auth records matching ``emails``; caller commits"""
    emails = {email.lower() for email in emails}
    if not emails:
        return 0
    accounts = db.session.query(Auth).filter(func.lower(Auth.email).in_(emails)).all()
    for account in accounts:
        account.is_reviewer = value
    return len(accounts)


def _build_reviewer(record: Dict[str, Any], field: str = 'reviewer') -> Reviewer:
    if not isinstance(record, dict):
        raise ValidationError(f"{field} must be an object")
    require_fields(record, 'firstName', 'email')
    return Reviewer(
        first_name=record['firstName'].strip(),
        last_name=record.get('lastName'),
        email=normalize_email(record['email'], f'{field}.email'),
        affiliation=record.get('affiliation'),
    )


def _reviewer_exists(email: str) -> bool:
    return db.session.query(Reviewer.id).filter_by(email=email).first() is not None


def register_reviewer(first_name: str, last_name: str, email: str, affiliation: str = None) -> Reviewer:
    reviewer = _build_reviewer({'firstName': first_name, 'lastName': last_name,
                                'email': email, 'affiliation': affiliation})

    if _reviewer_exists(reviewer.email):
        raise ConflictError("Reviewer already exists")

    try:
        db.session.add(reviewer)
        linked = _set_reviewer_flag([reviewer.email], True)
        db.session.commit()
    except IntegrityError as e:
        # Registered concurrently by another request
        db.session.rollback()
        raise ConflictError("Reviewer already exists", details=str(e.orig))

    if not linked:
        # Reviewers may be registered before they create an account
        logger.warning(f"Reviewer {reviewer.email} has no matching account; isReviewer not set")
    logger.info(f"Reviewer {reviewer.id} registered: {reviewer.email}")
    return reviewer


def register_reviewers_bulk(records: Any) -> List[Reviewer]:
    """Insert every record or none of them"""
    if not isinstance(records, list) or not records:
        raise ValidationError("Request body must be a non-empty array of reviewers")

    reviewers = [_build_reviewer(record, f'reviewers[{index}]') for index, record in enumerate(records)]
    emails = [reviewer.email for reviewer in reviewers]

    duplicates = sorted({email for email in emails if emails.count(email) > 1})
    if duplicates:
        raise ConflictError(f"Duplicate reviewer emails in request: {', '.join(duplicates)}")

    existing = [row.email for row in db.session.query(Reviewer.email).filter(Reviewer.email.in_(emails))]
    if existing:
        raise ConflictError(f"Reviewer already exists: {', '.join(sorted(existing))}")

    db.session.add_all(reviewers)
    linked = _set_reviewer_flag(emails, True)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError("Reviewers addition conflicted with existing records", details=str(e.orig))

    logger.info(f"Bulk registered {len(reviewers)} reviewers ({linked} linked to accounts)")
    return reviewers


def list_reviewers() -> List[Reviewer]:
    return db.session.query(Reviewer).order_by(Reviewer.created_at).all()


def remove_reviewer(reviewer_id: str) -> None:
    reviewer = db.session.get(Reviewer, reviewer_id) if reviewer_id else None
    if not reviewer:
        raise NotFoundError("Reviewer not found")

    db.session.delete(reviewer)
    _set_reviewer_flag([reviewer.email], False)
    db.session.commit()

    logger.info(f"Reviewer {reviewer_id} removed: {reviewer.email}")
