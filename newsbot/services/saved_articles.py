from sqlalchemy.exc import IntegrityError

from newsbot.errors import NotFound, Conflict
from newsbot.models import db, User, SavedArticle
from newsbot.services import articles


def resolve_article(article_id, article_data=None):
    """Finds the article a client refers to, creating it from article_data if needed.

    The URL lookup covers articles the client knows under a transient id
    (e.g. search results) that are already stored under another one.
    """
    article = articles.get_article(article_id)
    if article is None and article_data:
        article = articles.get_article_by_url(article_data.get('url'))
        if article is None:
            article = articles.create_article(article_data)
    return article


def find_saved(user_id, article_id):
    return SavedArticle.query.filter_by(user_id=user_id, article_id=article_id).first()


def save_article(user_id, article_id, article_data=None, notes=None):
    article = resolve_article(article_id, article_data)
    if article is None:
        raise NotFound('Article not found')

    if db.session.get(User, user_id) is None:
        raise NotFound('User not found')

    if find_saved(user_id, article.id) is not None:
        raise Conflict('Article already saved')

    saved = SavedArticle(user_id=user_id, article_id=article.id, notes=notes or None)
    db.session.add(saved)
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent save won the unique constraint
        db.session.rollback()
        raise Conflict('Article already saved')
    return saved


def list_saved_articles(user_id):
    return (SavedArticle.query
            .filter_by(user_id=user_id)
            .order_by(SavedArticle.saved_at.desc())
            .all())


def remove_saved_article(user_id, article_id):
    saved = find_saved(user_id, article_id)
    if saved is None:
        raise NotFound('Saved article not found')
    db.session.delete(saved)
    db.session.commit()
