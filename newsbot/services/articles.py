from datetime import datetime, timedelta, timezone

from flask import current_app

from newsbot.errors import ValidationError
from newsbot.models import db, NewsArticle, utc_now

RECENT_WINDOW = timedelta(days=2)
REQUIRED_FIELDS = ('title', 'url', 'source')
OPTIONAL_TEXT_FIELDS = ('summary', 'content', 'imageUrl', 'category')


def parse_published_at(value):
    """Parses an ISO-8601 timestamp as sent by clients and news providers."""
    if value is None or value == '':
        return utc_now()
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"unsupported publishedAt value: {value!r}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def get_article(article_id):
    if not article_id or not isinstance(article_id, str):
        return None
    return db.session.get(NewsArticle, article_id)


def get_article_by_url(url):
    if not url or not isinstance(url, str):
        return None
    return NewsArticle.query.filter_by(url=url).first()


def create_article(data):
    """Creates an article from client supplied data.

    Raises ValidationError for missing or non-text fields and for a publish
    timestamp that cannot be parsed.
    """
    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise ValidationError(f"Failed to create article: missing {', '.join(missing)}")
    wrong = [field for field in REQUIRED_FIELDS + OPTIONAL_TEXT_FIELDS
             if data.get(field) is not None and not isinstance(data[field], str)]
    if wrong:
        raise ValidationError(f"Failed to create article: {', '.join(wrong)} must be text")

    try:
        published_at = parse_published_at(data.get('publishedAt'))
    except ValueError as e:
        raise ValidationError(f"Failed to create article: invalid publishedAt ({e})")

    article = NewsArticle(
        title=data['title'],
        url=data['url'],
        source=data['source'],
        summary=data.get('summary') or '',
        content=data.get('content') or '',
        image_url=data.get('imageUrl'),
        category=data.get('category') or 'general',
        published_at=published_at,
    )
    db.session.add(article)
    db.session.flush()
    return article


def upsert_article(item):
    """Stores a provider article keyed by URL, refreshing it when already known."""
    summary = item.get('description') or (item.get('content') or '')[:300]
    content = item.get('content') or item.get('description') or ''
    article = get_article_by_url(item['url'])
    if article is None:
        article = NewsArticle(
            url=item['url'],
            source=item.get('source') or 'Unknown',
            published_at=parse_published_at(item.get('publishedAt')),
        )
        db.session.add(article)
    article.title = item['title']
    article.summary = summary
    article.content = content
    if item.get('urlToImage'):
        article.image_url = item['urlToImage']
    article.category = item.get('category') or 'general'
    article.scraped_at = utc_now()
    return article


def store_provider_articles(items):
    saved = []
    for item in items:
        if not item.get('url') or not item.get('title'):
            continue
        try:
            article = upsert_article(item)
        except ValueError as e:
            current_app.logger.warning("Skipping article %s: %s", item['url'], e)
            continue
        saved.append(article)
    db.session.commit()
    return saved


def recent_articles_query(category=None, now=None):
    now = now or utc_now()
    query = NewsArticle.query.filter(NewsArticle.published_at >= _naive(now - RECENT_WINDOW))
    if category and category != 'all':
        query = query.filter(NewsArticle.category == category)
    return query.order_by(NewsArticle.published_at.desc())


def latest_articles(limit=15):
    return NewsArticle.query.order_by(NewsArticle.published_at.desc()).limit(limit).all()


def purge_stale_articles(now=None):
    now = now or utc_now()
    # saved articles keep their rows
    count = NewsArticle.query.filter(
        ~NewsArticle.saves.any(),
        db.or_(
            NewsArticle.published_at < _naive(now - RECENT_WINDOW),
            NewsArticle.scraped_at < _naive(now - timedelta(days=1)),
        )
    ).delete(synchronize_session=False)
    db.session.commit()
    return count


def is_recent(published_at, now=None):
    now = now or utc_now()
    return as_utc(published_at) >= now - RECENT_WINDOW


def as_utc(value):
    # SQLite hands datetimes back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _naive(value):
    return value.astimezone(timezone.utc).replace(tzinfo=None)
