import json
import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utc_now():
    return datetime.now(timezone.utc)


def new_id():
    return uuid.uuid4().hex


def isoformat(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(100))
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=utc_now)

    saved_articles = db.relationship('SavedArticle', backref='user', lazy=True,
                                     cascade='all, delete-orphan')
    chat_sessions = db.relationship('ChatSession', backref='user', lazy=True,
                                    cascade='all, delete-orphan')

    def to_dict(self):
        # password_hash never leaves the server
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'createdAt': isoformat(self.created_at),
        }


class NewsArticle(db.Model):
    __tablename__ = 'news_articles'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    url = db.Column(db.String(2048), unique=True, nullable=False)
    title = db.Column(db.String(500), nullable=False)
    summary = db.Column(db.Text, default='')
    content = db.Column(db.Text, default='')
    image_url = db.Column(db.String(2048))
    source = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), default='general')
    published_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    scraped_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    saves = db.relationship('SavedArticle', backref='article', lazy=True,
                            cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'title': self.title,
            'summary': self.summary,
            'content': self.content,
            'imageUrl': self.image_url,
            'source': self.source,
            'category': self.category,
            'publishedAt': isoformat(self.published_at),
            'scrapedAt': isoformat(self.scraped_at),
        }


class SavedArticle(db.Model):
    __tablename__ = 'saved_articles'
    __table_args__ = (db.UniqueConstraint('user_id', 'article_id', name='uq_saved_user_article'),)

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    article_id = db.Column(db.String(32), db.ForeignKey('news_articles.id'), nullable=False)
    notes = db.Column(db.Text)
    saved_at = db.Column(db.DateTime, default=utc_now)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'articleId': self.article_id,
            'notes': self.notes,
            'savedAt': isoformat(self.saved_at),
            'article': self.article.to_dict() if self.article else None,
        }


class ChatSession(db.Model):
    __tablename__ = 'chat_sessions'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    # JSON array of article ids, NULL when nothing was selected
    selected_articles = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now)

    messages = db.relationship('ChatMessage', backref='session', lazy=True,
                               order_by='ChatMessage.timestamp',
                               cascade='all, delete-orphan')

    @property
    def selected_article_ids(self):
        if self.selected_articles is None:
            return None
        return json.loads(self.selected_articles)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'isActive': self.is_active,
            'selectedArticles': self.selected_article_ids,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
            'messages': [m.to_dict() for m in self.messages],
            'messageCount': len(self.messages),
        }


class ChatMessage(db.Model):
    __tablename__ = 'chat_messages'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    session_id = db.Column(db.String(32), db.ForeignKey('chat_sessions.id'), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # user / assistant
    content = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, default=utc_now)

    def to_dict(self):
        return {
            'id': self.id,
            'sessionId': self.session_id,
            'role': self.role,
            'content': self.content,
            'timestamp': isoformat(self.timestamp),
        }
