# services/journals.py
"""
Journal lifecycle and editor provisioning
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from core.database_models import db, Auth, Journal
from core.errors import ConflictError, NotFoundError
from core.security_manager import security_manager
from core.validation import normalize_email, require_fields

logger = logging.getLogger(__name__)


def _get_journal(journal_id: str) -> Journal:
    journal = db.session.get(Journal, journal_id) if journal_id else None
    if not journal:
        raise NotFoundError("Journal not found")
    return journal


def _editor_summary(editor: Optional[Auth]) -> Optional[Dict[str, Any]]:
    if editor is None:
        return None
    return {
        'id': editor.id,
        'firstName': editor.first_name,
        'lastName': editor.last_name,
        'email': editor.email,
    }


def _identity_conflict(email: str, phone_number: str) -> Optional[str]:
    """Message describing which identity field is already registered, if any"""
    if db.session.query(Auth).filter_by(email=email).first():
        return "Editor already exists"
    if db.session.query(Auth).filter_by(phone_number=phone_number).first():
        return "Phone number already exists"
    return None


def create_journal(title: str, description: str = None) -> Journal:
    require_fields({'title': title}, 'title')
    journal = Journal(title=title.strip(), description=description)
    db.session.add(journal)
    db.session.commit()
    logger.info(f"Journal {journal.id} created: {journal.title}")
    return journal


def delete_journal(journal_id: str) -> None:
    """Delete a journal together with its editor's identity record"""
    journal = _get_journal(journal_id)
    editor_id = journal.editor_id

    db.session.delete(journal)
    if editor_id:
        editor = db.session.get(Auth, editor_id)
        if editor:
            db.session.delete(editor)
    db.session.commit()

    logger.info(f"Journal {journal_id} deleted (editor removed: {bool(editor_id)})")


def list_journals() -> List[Dict[str, Any]]:
    journals = db.session.query(Journal).order_by(Journal.created_at).all()

    editor_ids = {journal.editor_id for journal in journals if journal.editor_id}
    editors = {}
    if editor_ids:
        editors = {auth.id: auth for auth in db.session.query(Auth).filter(Auth.id.in_(editor_ids))}

    results = []
    for journal in journals:
        editor = editors.get(journal.editor_id)
        data = journal.to_dict()
        data['editor'] = _editor_summary(editor)
        data['editorId'] = editor.id if editor else None
        results.append(data)
    return results


def assign_editor(journal_id: str, first_name: str, middle_name: str, last_name: str,
                  email: str, phone_number: str, gender: str = None) -> Dict[str, str]:
    """
    Provision an editor account and link it to a journal

    Returns:
        The generated ``password`` and ``userName``; the password is not
        recoverable afterwards.
    """
    require_fields({'journalId': journal_id, 'firstName': first_name,
                    'email': email, 'phoneNumber': phone_number},
                   'journalId', 'firstName', 'email', 'phoneNumber')
    email = normalize_email(email)
    phone_number = phone_number.strip()

    journal = _get_journal(journal_id)
    if journal.editor_id:
        raise ConflictError("Journal already has an editor")

    conflict = _identity_conflict(email, phone_number)
    if conflict:
        raise ConflictError(conflict)

    password = security_manager.generate_password()
    user_name = security_manager.generate_username(
        first_name,
        lambda candidate: db.session.query(Auth.id).filter_by(user_name=candidate).first() is not None
    )

    editor = Auth(
        first_name=first_name.strip(),
        middle_name=middle_name,
        last_name=last_name,
        user_name=user_name,
        email=email,
        phone_number=phone_number,
        password_hash=security_manager.hash_password(password),
        gender=gender,
        is_editor=True,
    )
    try:
        db.session.add(editor)
        db.session.flush()
        journal.editor_id = editor.id
        db.session.commit()
    except IntegrityError as e:
        # A concurrent request registered the same email, phone or username
        db.session.rollback()
        raise ConflictError("Editor already exists", details=str(e.orig))

    security_manager.log_security_event('editor_provisioned', {
        'journal_id': journal.id,
        'editor_id': editor.id,
        'user_name': user_name
    })
    return {'password': password, 'userName': user_name}


def remove_editor(journal_id: str) -> None:
    journal = _get_journal(journal_id)

    if journal.editor_id:
        editor = db.session.get(Auth, journal.editor_id)
        if editor:
            db.session.delete(editor)
    journal.editor_id = None
    db.session.commit()

    security_manager.log_security_event('editor_removed', {'journal_id': journal.id})
