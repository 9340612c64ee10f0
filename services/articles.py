# services/articles.py
"""
Article submission, retrieval and the review workflow
"""

import json
import logging
from typing import Any, Dict, List

from sqlalchemy import String, cast

from core.database_models import db, Article
from core.errors import NotFoundError, ValidationError
from core.validation import (
    emails_match, parse_authors, parse_keywords, parse_reviewer_entry,
    parse_reviewers, require_fields,
)

logger = logging.getLogger(__name__)

# Request field -> column for full article updates
MUTABLE_FIELDS = {
    'title': 'title',
    'abstract': 'abstract',
    'keywords': 'keywords',
    'authors': 'authors',
    'journalId': 'journal_id',
    'file': 'file',
    'reviewers': 'reviewers',
}

FIELD_PARSERS = {
    'keywords': parse_keywords,
    'authors': parse_authors,
    'reviewers': parse_reviewers,
}

REVIEW_PROJECTION = ('id', 'title', 'file', 'createdAt')


def _get_article(article_id: str) -> Article:
    article = db.session.get(Article, article_id) if article_id else None
    if not article:
        raise NotFoundError("Journal article not found")
    return article


def _json_like_pattern(email: str) -> str:
    """LIKE pattern for ``email`` as it appears inside serialized JSON (``!`` escapes)"""
    # Stored JSON escapes non-ASCII characters as \uXXXX
    encoded = json.dumps(email)[1:-1]
    escaped = encoded.replace('!', '!!').replace('%', '!%').replace('_', '!_')
    return f"%{escaped}%"


def _articles_mentioning(column, email: str) -> List[Article]:
    """Coarse text match on a JSON list column; callers filter exactly"""
    return (db.session.query(Article)
            .filter(cast(column, String).ilike(_json_like_pattern(email), escape='!'))
            .order_by(Article.created_at)
            .all())


def submit_article(user_id: str, title: str, abstract: str, keywords: Any,
                   file_ref: str, authors: Any, journal_id: str) -> Article:
    require_fields({'userId': user_id, 'title': title, 'journalId': journal_id, 'file': file_ref},
                   'userId', 'title', 'journalId', 'file')

    article = Article(
        user_id=user_id,
        title=title.strip(),
        abstract=abstract,
        keywords=parse_keywords(keywords if keywords is not None else []),
        file=file_ref,
        authors=parse_authors(authors if authors is not None else []),
        journal_id=journal_id,
        reviewers=[],
    )
    db.session.add(article)
    db.session.commit()

    logger.info(f"Article {article.id} submitted by {user_id} to journal {journal_id}")
    return article


def list_articles_for_user(user_id: str, user_email: str) -> List[Article]:
    """
    Articles owned by the user followed by articles listing the user as an author

    Each article appears once; owned articles come first.
    """
    owned = (db.session.query(Article)
             .filter_by(user_id=user_id)
             .order_by(Article.created_at)
             .all())
    owned_ids = {article.id for article in owned}

    co_authored = []
    if user_email:
        co_authored = [
            article for article in _articles_mentioning(Article.authors, user_email)
            if article.id not in owned_ids
            and any(emails_match(author.get('email'), user_email) for author in article.authors or [])
        ]

    articles = owned + co_authored
    if not articles:
        raise NotFoundError("You didn't submit any journal article")
    return articles


def list_articles_by_journal(journal_id: str) -> List[Article]:
    articles = (db.session.query(Article)
                .filter_by(journal_id=journal_id)
                .order_by(Article.created_at)
                .all())
    if not articles:
        raise NotFoundError("No journal articles found")
    return articles


def update_article(article_id: str, patch: Dict[str, Any]) -> Article:
    """Replace every mutable field present in ``patch``"""
    article = _get_article(article_id)

    for field, attribute in MUTABLE_FIELDS.items():
        if field not in patch:
            continue
        value = patch[field]
        if field in FIELD_PARSERS:
            value = FIELD_PARSERS[field](value)
        elif field in ('title', 'journalId'):
            require_fields({field: value}, field)
        setattr(article, attribute, value)

    db.session.commit()
    logger.info(f"Article {article.id} updated ({', '.join(k for k in patch if k in MUTABLE_FIELDS)})")
    return article


def update_review(article_id: str, reviewer_email: str, review_patch: Any) -> Article:
    """Replace the caller's own reviewer entry on an article"""
    article = _get_article(article_id)
    if not isinstance(review_patch, dict):
        raise ValidationError("review must be an object")

    reviewers = list(article.reviewers or [])
    index = next((i for i, entry in enumerate(reviewers)
                  if emails_match(entry.get('email'), reviewer_email)), None)
    if index is None:
        raise NotFoundError("Reviewer not assigned to this article")

    # The entry stays bound to the caller's email whatever the patch says
    reviewers[index] = parse_reviewer_entry(dict(review_patch, email=reviewers[index]['email']), 'review')
    article.reviewers = reviewers
    db.session.commit()

    logger.info(f"Review by {reviewer_email} updated on article {article.id}: {reviewers[index]['status']}")
    return article


def list_articles_for_reviewer(reviewer_email: str) -> List[Dict[str, Any]]:
    """Articles the email reviews, each showing only that reviewer's entry"""
    projections = []
    for article in _articles_mentioning(Article.reviewers, reviewer_email or ''):
        own_entries = [entry for entry in article.reviewers or []
                       if emails_match(entry.get('email'), reviewer_email)]
        if not own_entries:
            continue
        data = article.to_dict()
        projection = {key: data[key] for key in REVIEW_PROJECTION}
        projection['reviewers'] = own_entries
        projections.append(projection)

    if not projections:
        raise NotFoundError("No review articles found")
    return projections
