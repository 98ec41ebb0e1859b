import pytest
import requests

from newsbot.app import create_app
from newsbot.auth.routes import hash_password
from newsbot.models import db, User, NewsArticle, utc_now


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'BCRYPT_LOG_ROUNDS': 4,
        'GEMINI_API_KEY': None,
        'NEWS_API_KEY': None,
        'SEARXNG_URL': None,
        'SHOW_ERROR_DETAILS': True,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email='reader@example.com', password='secret123', name='Reader'):
    user = User(email=email, name=name, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def make_article(url='https://news.example.com/story', **fields):
    values = {
        'title': 'Council approves new park',
        'source': 'Example News',
        'summary': 'The council voted on Tuesday.',
        'content': 'The city council approved the plan for a new park downtown.',
        'category': 'general',
        'published_at': utc_now(),
    }
    values.update(fields)
    article = NewsArticle(url=url, **values)
    db.session.add(article)
    db.session.commit()
    return article


def login(client, user):
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
        sess['user_email'] = user.email


@pytest.fixture
def user(app):
    return make_user()


@pytest.fixture
def auth_client(client, user):
    login(client, user)
    return client


class FakeResponse:
    def __init__(self, status_code=200, content=b'', payload=None):
        self.status_code = status_code
        self.content = content
        self.text = content.decode('utf-8', 'replace')
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")
