"""Pytest configuration and fixtures."""
from typing import Any, Callable, Dict

import pytest

from app import create_app
from core.database_models import db, Article, Auth, Journal, Reviewer


@pytest.fixture
def app(tmp_path):
    """Application built from TestingConfig with temporary storage folders."""
    app = create_app('testing')
    app.config.update(
        UPLOAD_FOLDER=str(tmp_path / 'upload'),
        ARCHIVE_FOLDER=str(tmp_path / 'zip'),
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_auth(app) -> Callable[..., Auth]:
    """Create Auth rows; the stored password hash is a placeholder."""
    counter = {'n': 0}

    def _make(**overrides: Any) -> Auth:
        counter['n'] += 1
        n = counter['n']
        values: Dict[str, Any] = {
            'first_name': f'User{n}',
            'last_name': 'Tester',
            'user_name': f'user{n}',
            'email': f'user{n}@example.org',
            'phone_number': f'+1555000{n:04d}',
            'password_hash': 'salt$hash',
        }
        values.update(overrides)
        auth = Auth(**values)
        db.session.add(auth)
        db.session.commit()
        return auth

    return _make


@pytest.fixture
def make_journal(app) -> Callable[..., Journal]:
    def _make(**overrides: Any) -> Journal:
        values = {'title': 'Journal of Testing', 'description': 'A journal'}
        values.update(overrides)
        journal = Journal(**values)
        db.session.add(journal)
        db.session.commit()
        return journal

    return _make


@pytest.fixture
def make_article(app) -> Callable[..., Article]:
    def _make(**overrides: Any) -> Article:
        values = {
            'user_id': 'someone-else',
            'title': 'An Article',
            'abstract': 'Abstract',
            'keywords': ['testing'],
            'file': 'paper.pdf',
            'authors': [],
            'journal_id': 'J1',
            'reviewers': [],
        }
        values.update(overrides)
        article = Article(**values)
        db.session.add(article)
        db.session.commit()
        return article

    return _make


@pytest.fixture
def make_reviewer(app) -> Callable[..., Reviewer]:
    def _make(**overrides: Any) -> Reviewer:
        values = {'first_name': 'Rita', 'last_name': 'Reviewer',
                  'email': 'r@x.com', 'affiliation': 'University'}
        values.update(overrides)
        reviewer = Reviewer(**values)
        db.session.add(reviewer)
        db.session.commit()
        return reviewer

    return _make


@pytest.fixture
def user(make_auth) -> Auth:
    return make_auth(first_name='Alice', user_name='alice1', email='alice@example.org')


@pytest.fixture
def login(client) -> Callable[[Auth], Any]:
    """Put an Auth record's id in the test client's session."""
    def _login(auth: Auth):
        with client.session_transaction() as sess:
            sess['user_id'] = auth.id
        return client

    return _login


@pytest.fixture
def auth_client(login, user):
    return login(user)
