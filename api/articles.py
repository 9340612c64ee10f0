# api/articles.py
"""
Article submission, retrieval and review endpoints
"""

from flask import Blueprint, g, request, send_from_directory

from api.responses import api_handler, success
from core.errors import ArchiveIOError, ValidationError
from middleware.security import require_auth
from services import articles as article_service
from services.storage import resolve_upload, save_upload, upload_folder

articles_bp = Blueprint('articles', __name__)


def _article_id(data):
    article_id = data.get('id') or data.get('_id')
    if not article_id:
        raise ValidationError("Article id is required")
    return article_id


@articles_bp.route('', methods=['POST'])
@require_auth
@api_handler("Article submission failed")
def submit_article():
    """Multipart submission: article fields plus the manuscript file"""
    form = request.form
    stored_name = save_upload(request.files.get('file'))
    try:
        article = article_service.submit_article(
            user_id=form.get('userId') or g.current_user.id,
            title=form.get('title'),
            abstract=form.get('abstract'),
            keywords=form.get('keywords'),
            file_ref=stored_name,
            authors=form.get('authors'),
            journal_id=form.get('journalId'),
        )
    except Exception:
        resolve_upload(stored_name).unlink(missing_ok=True)
        raise
    return success("Article submitted successfully", article.to_dict(), 201)


@articles_bp.route('', methods=['GET'])
@require_auth
@api_handler("Journal Articles data retrieval failed")
def list_my_articles():
    user = g.current_user
    articles = article_service.list_articles_for_user(user.id, user.email)
    return success("Journal Articles data retrieved successfully",
                   [article.to_dict() for article in articles])


@articles_bp.route('', methods=['PUT'])
@require_auth
@api_handler("Journal article update failed")
def update_article():
    data = request.get_json(silent=True) or {}
    article = article_service.update_article(_article_id(data), data)
    return success("Journal article updated successfully", article.to_dict())


@articles_bp.route('/journal/<journal_id>', methods=['GET'])
@require_auth
@api_handler("Journal Articles data retrieval failed")
def list_journal_articles(journal_id):
    articles = article_service.list_articles_by_journal(journal_id)
    return success("Journal Articles data retrieved successfully",
                   [article.to_dict() for article in articles])


@articles_bp.route('/review', methods=['PUT'])
@require_auth
@api_handler("Journal article update failed")
def update_review():
    """Body: {id, reviewers: [entry]} where entry replaces the caller's review"""
    data = request.get_json(silent=True) or {}
    entries = data.get('reviewers')
    if isinstance(entries, list) and entries:
        review = entries[0]
    else:
        review = data.get('review')
    if review is None:
        raise ValidationError("A review entry is required")

    article_service.update_review(_article_id(data), g.current_user.email, review)
    return success("Journal article updated successfully")


@articles_bp.route('/review', methods=['GET'])
@require_auth
@api_handler("Journal Articles data retrieval failed")
def list_review_articles():
    return success("Journal Articles data retrieved successfully",
                   article_service.list_articles_for_reviewer(g.current_user.email))


@articles_bp.route('/files/<filename>', methods=['GET'])
@require_auth
@api_handler("File download failed")
def download_file(filename):
    if not resolve_upload(filename).is_file():
        raise ArchiveIOError(f"Uploaded file not found: {filename}")
    return send_from_directory(upload_folder().resolve(), filename, as_attachment=True)
