from datetime import timedelta

import pytest

from newsbot.models import db, NewsArticle, SavedArticle, utc_now
from newsbot.services import saved_articles

from conftest import make_article, make_user, login


def article_payload(**overrides):
    payload = {
        'title': 'Search result headline',
        'url': 'https://wire.example.com/headline',
        'source': 'Wire',
        'publishedAt': '2026-10-17T08:30:00Z',
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize('method, kwargs', [
    ('get', {}),
    ('post', {'json': {'articleId': 'anything'}}),
    ('delete', {'query_string': {'articleId': 'anything'}}),
])
def test_requires_authentication(client, user, method, kwargs):
    response = getattr(client, method)('/api/saved-articles', **kwargs)

    assert response.status_code == 401
    assert response.get_json() == {'error': 'Unauthorized'}
    assert SavedArticle.query.count() == 0


def test_save_existing_article(auth_client, user):
    article = make_article()

    response = auth_client.post('/api/saved-articles',
                                json={'articleId': article.id, 'notes': 'read later'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['articleId'] == article.id
    assert body['userId'] == user.id
    assert body['notes'] == 'read later'
    assert body['article']['title'] == 'Council approves new park'


def test_saving_twice_conflicts(auth_client, user):
    article = make_article()

    first = auth_client.post('/api/saved-articles', json={'articleId': article.id})
    second = auth_client.post('/api/saved-articles', json={'articleId': article.id})

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.get_json() == {'error': 'Article already saved'}
    assert SavedArticle.query.filter_by(user_id=user.id).count() == 1


def test_unknown_article_without_data_is_404(auth_client):
    response = auth_client.post('/api/saved-articles', json={'articleId': 'missing'})

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Article not found'}


def test_missing_article_id_is_400(auth_client):
    response = auth_client.post('/api/saved-articles', json={'notes': 'x'})

    assert response.status_code == 400


def test_unknown_article_is_created_from_data(auth_client):
    response = auth_client.post('/api/saved-articles',
                                json={'articleId': 'search-1', 'article': article_payload()})

    assert response.status_code == 200
    article = NewsArticle.query.filter_by(url='https://wire.example.com/headline').one()
    assert article.summary == ''
    assert article.content == ''
    assert article.category == 'general'
    assert article.published_at.year == 2026
    assert response.get_json()['articleId'] == article.id


def test_article_matched_by_url_is_reused(auth_client):
    existing = make_article(url='https://wire.example.com/headline')

    response = auth_client.post('/api/saved-articles',
                                json={'articleId': 'search-1', 'article': article_payload()})

    assert response.status_code == 200
    assert response.get_json()['articleId'] == existing.id
    assert NewsArticle.query.count() == 1


def test_malformed_publish_date_is_reported(auth_client):
    response = auth_client.post('/api/saved-articles', json={
        'articleId': 'search-1',
        'article': article_payload(publishedAt='yesterday-ish'),
    })

    assert response.status_code == 400
    assert response.get_json()['error'].startswith('Failed to create article')
    assert NewsArticle.query.count() == 0
    assert SavedArticle.query.count() == 0


def test_stale_session_user_is_404(client):
    article = make_article()
    ghost = make_user(email='ghost@example.com')
    login(client, ghost)
    db.session.delete(ghost)
    db.session.commit()

    response = client.post('/api/saved-articles', json={'articleId': article.id})

    assert response.status_code == 404
    assert response.get_json() == {'error': 'User not found'}


def test_list_is_newest_first(auth_client, user):
    older = make_article(url='https://news.example.com/older', title='Older')
    newer = make_article(url='https://news.example.com/newer', title='Newer')
    now = utc_now()
    db.session.add(SavedArticle(user_id=user.id, article_id=older.id, saved_at=now - timedelta(hours=2)))
    db.session.add(SavedArticle(user_id=user.id, article_id=newer.id, saved_at=now))
    other = make_user(email='other@example.com')
    db.session.add(SavedArticle(user_id=other.id, article_id=older.id, saved_at=now))
    db.session.commit()

    response = auth_client.get('/api/saved-articles')

    assert response.status_code == 200
    titles = [s['article']['title'] for s in response.get_json()]
    assert titles == ['Newer', 'Older']


def test_delete_saved_article(auth_client, user):
    article = make_article()
    auth_client.post('/api/saved-articles', json={'articleId': article.id})

    response = auth_client.delete('/api/saved-articles', query_string={'articleId': article.id})

    assert response.status_code == 200
    assert response.get_json() == {'message': 'Article removed from saved list'}
    assert SavedArticle.query.count() == 0
    assert NewsArticle.query.count() == 1


def test_delete_missing_saved_article_is_404(auth_client, user):
    article = make_article()
    other = make_user(email='other@example.com')
    db.session.add(SavedArticle(user_id=other.id, article_id=article.id))
    db.session.commit()

    response = auth_client.delete('/api/saved-articles', query_string={'articleId': article.id})

    assert response.status_code == 404
    assert SavedArticle.query.count() == 1


def test_delete_requires_article_id(auth_client):
    assert auth_client.delete('/api/saved-articles').status_code == 400


def test_unexpected_failure_is_500(auth_client, monkeypatch):
    def boom(user_id):
        raise RuntimeError('database is on fire')
    monkeypatch.setattr(saved_articles, 'list_saved_articles', boom)

    response = auth_client.get('/api/saved-articles')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Internal server error', 'details': 'database is on fire'}


def test_unexpected_failure_hides_details_in_production(app, auth_client, monkeypatch):
    app.config['SHOW_ERROR_DETAILS'] = False

    def boom(user_id):
        raise RuntimeError('database is on fire')
    monkeypatch.setattr(saved_articles, 'list_saved_articles', boom)

    response = auth_client.get('/api/saved-articles')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Internal server error'}


@pytest.mark.parametrize('overrides', [
    {'title': {'text': 'Nested'}},
    {'url': ['https://wire.example.com/a', 'https://wire.example.com/b']},
    {'source': 7},
    {'summary': ['not', 'text']},
])
def test_non_text_article_fields_are_reported(auth_client, overrides):
    response = auth_client.post('/api/saved-articles', json={
        'articleId': 'search-1',
        'article': article_payload(**overrides),
    })

    assert response.status_code == 400
    assert response.get_json()['error'].startswith('Failed to create article')
    assert NewsArticle.query.count() == 0
    assert SavedArticle.query.count() == 0


def test_lost_save_race_is_409(auth_client, user, monkeypatch):
    article = make_article()
    db.session.add(SavedArticle(user_id=user.id, article_id=article.id))
    db.session.commit()
    # both requests passed the lookup before either committed
    monkeypatch.setattr(saved_articles, 'find_saved', lambda user_id, article_id: None)

    response = auth_client.post('/api/saved-articles', json={'articleId': article.id})

    assert response.status_code == 409
    assert response.get_json() == {'error': 'Article already saved'}
    assert SavedArticle.query.count() == 1
