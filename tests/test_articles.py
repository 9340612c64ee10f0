"""Tests for article submission, retrieval and the review workflow."""
import io
import json
import os
from unittest.mock import patch

from werkzeug.datastructures import FileStorage

from core.database_models import db, Article
from services.storage import save_upload


def _submission(**overrides):
    data = {
        'userId': 'U1',
        'title': 'Graph Methods',
        'abstract': 'We study graphs.',
        'keywords': json.dumps(['x', 'y']),
        'authors': json.dumps([{'email': 'a@x.com'}]),
        'journalId': 'J1',
        'file': (io.BytesIO(b'%PDF-1.4 manuscript'), 'manuscript.pdf'),
    }
    data.update(overrides)
    return data


class TestSubmitArticle:

    def test_stores_parsed_fields(self, app, auth_client):
        response = auth_client.post('/api/articles', data=_submission(),
                                    content_type='multipart/form-data')

        assert response.status_code == 201
        body = response.get_json()
        assert body['success'] is True
        assert body['message'] == 'Article submitted successfully'

        stored = db.session.get(Article, body['data']['id'])
        assert stored.keywords == ['x', 'y']
        assert len(stored.authors) == 1
        assert stored.authors[0]['email'] == 'a@x.com'
        assert stored.journal_id == 'J1'
        assert stored.reviewers == []
        assert stored.user_id == 'U1'
        assert stored.file.endswith('-manuscript.pdf')
        assert os.path.isfile(os.path.join(app.config['UPLOAD_FOLDER'], stored.file))

    def test_defaults_owner_to_session_user(self, auth_client, user):
        data = _submission()
        del data['userId']
        response = auth_client.post('/api/articles', data=data, content_type='multipart/form-data')

        assert response.status_code == 201
        assert response.get_json()['data']['userId'] == user.id

    def test_malformed_keywords_rejected_and_upload_discarded(self, app, auth_client):
        response = auth_client.post('/api/articles', data=_submission(keywords='x, y'),
                                    content_type='multipart/form-data')

        assert response.status_code == 400
        body = response.get_json()
        assert body['success'] is False
        assert body['message'] == 'Article submission failed'
        assert body['error']['type'] == 'ValidationError'
        assert db.session.query(Article).count() == 0
        assert os.listdir(app.config['UPLOAD_FOLDER']) == []

    def test_authors_must_be_an_array_of_objects(self, auth_client):
        response = auth_client.post('/api/articles', data=_submission(authors=json.dumps(['a@x.com'])),
                                    content_type='multipart/form-data')

        assert response.status_code == 400
        assert db.session.query(Article).count() == 0

    def test_file_is_required(self, auth_client):
        data = _submission()
        del data['file']
        response = auth_client.post('/api/articles', data=data, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_requires_login(self, client):
        response = client.post('/api/articles', data=_submission(), content_type='multipart/form-data')

        assert response.status_code == 401
        assert response.get_json() == {'success': False, 'message': 'Authentication required'}


class TestListArticlesForUser:

    def test_owned_and_co_authored_articles_appear_once(self, auth_client, user, make_article):
        owned_and_authored = make_article(title='Mine', user_id=user.id,
                                          authors=[{'name': 'Alice', 'email': user.email, 'affiliation': None}])
        co_authored = make_article(title='Shared',
                                   authors=[{'name': 'Bob', 'email': 'bob@example.org', 'affiliation': None},
                                            {'name': 'Alice', 'email': user.email, 'affiliation': None}])
        make_article(title='Unrelated',
                     authors=[{'name': 'Bob', 'email': 'bob@example.org', 'affiliation': None}])

        response = auth_client.get('/api/articles')

        assert response.status_code == 200
        ids = [article['id'] for article in response.get_json()['data']]
        assert ids == [owned_and_authored.id, co_authored.id]

    def test_similar_email_is_not_a_match(self, auth_client, user, make_article):
        make_article(authors=[{'name': 'Mal', 'email': 'mal' + user.email, 'affiliation': None}])

        response = auth_client.get('/api/articles')

        assert response.status_code == 404

    def test_empty_result_is_reported_as_not_found(self, auth_client):
        response = auth_client.get('/api/articles')

        assert response.status_code == 404
        assert response.get_json() == {'success': False, 'message': "You didn't submit any journal article"}


class TestUpdateArticle:

    def test_replaces_mutable_fields(self, auth_client, make_article):
        article = make_article()

        response = auth_client.put('/api/articles', json={
            'id': article.id,
            'title': 'Revised',
            'keywords': ['revised'],
            'reviewers': [{'name': 'Rita', 'email': 'r@x.com'}],
            'userId': 'hijack',
        })

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['title'] == 'Revised'
        assert data['keywords'] == ['revised']
        assert data['reviewers'] == [{'name': 'Rita', 'email': 'r@x.com', 'status': 'pending', 'comments': None}]
        assert data['userId'] == 'someone-else'

    def test_accepts_underscore_id(self, auth_client, make_article):
        article = make_article()

        response = auth_client.put('/api/articles', json={'_id': article.id, 'abstract': 'New'})

        assert response.status_code == 200
        assert response.get_json()['data']['abstract'] == 'New'

    def test_unknown_article(self, auth_client):
        response = auth_client.put('/api/articles', json={'id': 'missing', 'title': 'x'})

        assert response.status_code == 404
        assert response.get_json()['message'] == 'Journal article not found'


class TestListByJournal:

    def test_returns_articles_of_the_journal(self, auth_client, make_article):
        first = make_article(journal_id='J1')
        make_article(journal_id='J2')

        response = auth_client.get('/api/articles/journal/J1')

        assert response.status_code == 200
        assert [a['id'] for a in response.get_json()['data']] == [first.id]

    def test_none_found(self, auth_client):
        response = auth_client.get('/api/articles/journal/J9')

        assert response.status_code == 404
        assert response.get_json()['message'] == 'No journal articles found'


class TestReviewWorkflow:

    def _reviewers(self):
        return [
            {'name': 'Other', 'email': 'other@example.org', 'status': 'pending', 'comments': None},
            {'name': 'Rita', 'email': 'r@x.com', 'status': 'pending', 'comments': None},
        ]

    def test_update_review_replaces_only_the_callers_entry(self, login, make_auth, make_article):
        client = login(make_auth(email='r@x.com'))
        article = make_article(reviewers=self._reviewers())

        response = client.put('/api/articles/review', json={
            'id': article.id,
            'reviewers': [{'name': 'Rita', 'email': 'other@example.org',
                           'status': 'accepted', 'comments': 'Solid work'}],
        })

        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'message': 'Journal article updated successfully'}
        db.session.expire_all()
        reviewers = db.session.get(Article, article.id).reviewers
        assert reviewers[0] == self._reviewers()[0]
        assert reviewers[1] == {'name': 'Rita', 'email': 'r@x.com', 'status': 'accepted', 'comments': 'Solid work'}

    def test_update_review_without_assignment_is_not_found(self, login, make_auth, make_article):
        client = login(make_auth(email='stranger@example.org'))
        article = make_article(reviewers=self._reviewers())

        response = client.put('/api/articles/review', json={
            'id': article.id, 'reviewers': [{'status': 'accepted'}]})

        assert response.status_code == 404
        assert response.get_json()['message'] == 'Reviewer not assigned to this article'
        db.session.expire_all()
        assert db.session.get(Article, article.id).reviewers == self._reviewers()

    def test_update_review_unknown_article(self, login, make_auth):
        client = login(make_auth(email='r@x.com'))

        response = client.put('/api/articles/review', json={'id': 'missing', 'reviewers': [{}]})

        assert response.status_code == 404

    def test_list_for_reviewer_projects_own_entry(self, login, make_auth, make_article):
        client = login(make_auth(email='r@x.com'))
        reviewed = make_article(title='Reviewed', reviewers=self._reviewers())
        make_article(title='Not mine', reviewers=[self._reviewers()[0]])

        response = client.get('/api/articles/review')

        assert response.status_code == 200
        data = response.get_json()['data']
        assert len(data) == 1
        assert data[0]['id'] == reviewed.id
        assert set(data[0]) == {'id', 'title', 'file', 'createdAt', 'reviewers'}
        assert [entry['email'] for entry in data[0]['reviewers']] == ['r@x.com']

    def test_list_for_reviewer_empty(self, login, make_auth):
        client = login(make_auth(email='r@x.com'))

        response = client.get('/api/articles/review')

        assert response.status_code == 404
        assert response.get_json()['message'] == 'No review articles found'

    def test_free_form_review_status(self, login, make_auth, make_article):
        client = login(make_auth(email='r@x.com'))
        article = make_article(reviewers=self._reviewers())

        response = client.put('/api/articles/review', json={
            'id': article.id, 'reviewers': [{'status': 'minor revision'}]})

        assert response.status_code == 200
        db.session.expire_all()
        assert db.session.get(Article, article.id).reviewers[1]['status'] == 'minor revision'

    def test_review_status_must_be_text(self, login, make_auth, make_article):
        client = login(make_auth(email='r@x.com'))
        article = make_article(reviewers=self._reviewers())

        response = client.put('/api/articles/review', json={
            'id': article.id, 'reviewers': [{'status': 3}]})

        assert response.status_code == 400


class TestNonAsciiEmails:
    EMAIL = 'josé@example.org'

    def test_co_authored_and_reviewed_articles_are_found(self, login, make_auth, make_article):
        client = login(make_auth(email=self.EMAIL))
        authored = make_article(title='Authored',
                                authors=[{'name': 'José', 'email': self.EMAIL, 'affiliation': None}])
        reviewed = make_article(title='Reviewed',
                                reviewers=[{'name': 'José', 'email': self.EMAIL,
                                            'status': 'pending', 'comments': None}])

        mine = client.get('/api/articles')
        reviews = client.get('/api/articles/review')

        assert mine.status_code == 200
        assert [a['id'] for a in mine.get_json()['data']] == [authored.id]
        assert reviews.status_code == 200
        assert [a['id'] for a in reviews.get_json()['data']] == [reviewed.id]

    def test_like_wildcards_in_email_match_literally(self, login, make_auth, make_article):
        client = login(make_auth(email='a_b@example.org'))
        make_article(authors=[{'name': 'Other', 'email': 'axb@example.org', 'affiliation': None}])

        assert client.get('/api/articles').status_code == 404


class TestUploads:

    def test_unexpected_failure_discards_upload(self, app, auth_client):
        with patch('api.articles.article_service.submit_article', side_effect=RuntimeError('database down')):
            response = auth_client.post('/api/articles', data=_submission(),
                                        content_type='multipart/form-data')

        assert response.status_code == 500
        assert response.get_json()['message'] == 'Article submission failed'
        assert os.listdir(app.config['UPLOAD_FOLDER']) == []

    def test_download_stored_file(self, auth_client):
        stored = auth_client.post('/api/articles', data=_submission(),
                                  content_type='multipart/form-data').get_json()['data']['file']

        response = auth_client.get(f'/api/articles/files/{stored}')

        assert response.status_code == 200
        assert response.data == b'%PDF-1.4 manuscript'
        assert response.headers['Content-Disposition'].startswith('attachment')

    def test_download_missing_file(self, auth_client):
        response = auth_client.get('/api/articles/files/1-missing.pdf')

        assert response.status_code == 404
        assert response.get_json()['message'] == 'File download failed'

    def test_same_millisecond_uploads_get_distinct_names(self, app):
        with patch('services.storage.timestamp_ms', return_value=1700000000000):
            first = save_upload(FileStorage(io.BytesIO(b'first'), 'paper.pdf'))
            second = save_upload(FileStorage(io.BytesIO(b'second'), 'paper.pdf'))

        assert first == '1700000000000-paper.pdf'
        assert second == '1700000000000-1-paper.pdf'
        folder = app.config['UPLOAD_FOLDER']
        with open(os.path.join(folder, first), 'rb') as fh:
            assert fh.read() == b'first'
        with open(os.path.join(folder, second), 'rb') as fh:
            assert fh.read() == b'second'
