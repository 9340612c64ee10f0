# core/validation.py
"""
Input parsing and validation for request payloads
"""

import json
from typing import Any, Dict, List, Optional

from email_validator import validate_email, EmailNotValidError

from core.errors import ValidationError

DEFAULT_REVIEW_STATUS = 'pending'


def require_fields(data: Dict[str, Any], *names: str) -> None:
    """Raise ValidationError naming every field that is absent or blank"""
    missing = [name for name in names
               if data.get(name) is None or (isinstance(data.get(name), str) and not data[name].strip())]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}",
                              details={'missing': missing})


def normalize_email(value: Any, field: str = 'email') -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        valid = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"{field} is not a valid email address", details=str(e))
    return valid.normalized.lower()


def emails_match(left: Optional[str], right: Optional[str]) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def parse_json_list(value: Any, field: str) -> List[Any]:
    """Accept a list or a JSON-encoded list (multipart form fields arrive as strings)"""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError(f"{field} must be a JSON-encoded array")
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be an array")
    return value


def parse_keywords(value: Any) -> List[str]:
    keywords = parse_json_list(value, 'keywords')
    if not all(isinstance(keyword, str) for keyword in keywords):
        raise ValidationError("keywords must be an array of strings")
    return [keyword.strip() for keyword in keywords if keyword.strip()]


def parse_authors(value: Any) -> List[Dict[str, Any]]:
    authors = []
    for index, entry in enumerate(parse_json_list(value, 'authors')):
        if not isinstance(entry, dict):
            raise ValidationError(f"authors[{index}] must be an object")
        authors.append({
            'name': entry.get('name'),
            'email': normalize_email(entry.get('email'), f'authors[{index}].email'),
            'affiliation': entry.get('affiliation'),
        })
    return authors


def parse_reviewer_entry(entry: Any, field: str = 'reviewer') -> Dict[str, Any]:
    if not isinstance(entry, dict):
        raise ValidationError(f"{field} must be an object")
    status = entry.get('status')
    if status is None or (isinstance(status, str) and not status.strip()):
        status = DEFAULT_REVIEW_STATUS
    if not isinstance(status, str):
        raise ValidationError(f"{field}.status must be a string")
    return {
        'name': entry.get('name'),
        'email': normalize_email(entry.get('email'), f'{field}.email'),
        'status': status.strip(),
        'comments': entry.get('comments'),
    }


def parse_reviewers(value: Any) -> List[Dict[str, Any]]:
    return [parse_reviewer_entry(entry, f'reviewers[{index}]')
            for index, entry in enumerate(parse_json_list(value, 'reviewers'))]
