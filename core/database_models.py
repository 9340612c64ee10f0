from datetime import datetime
import uuid
from sqlalchemy import (
    Column, String, DateTime, JSON, Text, Boolean
)

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id() -> str:
    return uuid.uuid4().hex


def _isoformat(value):
    return value.isoformat() if value else None


class Auth(db.Model):
    """Login identity for users, editors and reviewers"""
    __tablename__ = 'auth'

    id = Column(String(32), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100))
    last_name = Column(String(100))
    user_name = Column(String(120), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(32), unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    gender = Column(String(20))
    is_editor = Column(Boolean, default=False, nullable=False)
    is_reviewer = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'middleName': self.middle_name,
            'lastName': self.last_name,
            'userName': self.user_name,
            'email': self.email,
            'phoneNumber': self.phone_number,
            'gender': self.gender,
            'isEditor': self.is_editor,
            'isReviewer': self.is_reviewer,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Auth {self.user_name}>'


class Journal(db.Model):
    __tablename__ = 'journals'

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    editor_id = Column(String(32), index=True)  # Auth.id of the acting editor
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'editorId': self.editor_id,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Journal {self.title}>'


class Reviewer(db.Model):
    __tablename__ = 'reviewers'

    id = Column(String(32), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(255), unique=True, nullable=False, index=True)
    affiliation = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'affiliation': self.affiliation,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Reviewer {self.email}>'


class Article(db.Model):
    __tablename__ = 'articles'

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    abstract = Column(Text)
    keywords = Column(JSON, default=list)  # ["keyword", ...]
    file = Column(String(255))  # Stored upload name
    authors = Column(JSON, default=list)  # [{"name", "email", "affiliation"}, ...]
    journal_id = Column(String(32), nullable=False, index=True)
    reviewers = Column(JSON, default=list)  # [{"name", "email", "status", "comments"}, ...]
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'abstract': self.abstract,
            'keywords': list(self.keywords or []),
            'file': self.file,
            'authors': list(self.authors or []),
            'journalId': self.journal_id,
            'reviewers': list(self.reviewers or []),
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Article {self.title}>'
