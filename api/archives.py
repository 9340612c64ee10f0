# api/archives.py
"""
Zip archive endpoints: build from uploads, then download within the TTL
"""

from flask import Blueprint, current_app, request, send_from_directory

from api.responses import api_handler, success
from core.errors import NotFoundError
from middleware.security import require_auth
from services.archives import archive_folder, archive_path, build_archive

archives_bp = Blueprint('archives', __name__)


@archives_bp.route('', methods=['POST'])
@require_auth
@api_handler("Zip file creation failed")
def create_archive():
    data = request.get_json(silent=True) or {}
    filename = build_archive(data.get('files'))
    return success("Zip file created successfully", {
        'filename': filename,
        'expiresIn': current_app.config.get('ARCHIVE_TTL_SECONDS', 60),
    })


@archives_bp.route('/<filename>', methods=['GET'])
@require_auth
@api_handler("Zip file download failed")
def download_archive(filename):
    if not archive_path(filename).is_file():
        raise NotFoundError("Zip file not found or expired")
    return send_from_directory(archive_folder().resolve(), filename, as_attachment=True)
