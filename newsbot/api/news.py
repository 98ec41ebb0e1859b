from datetime import timedelta

from flask import Blueprint, jsonify, request

from newsbot.api.helpers import json_body
from newsbot.services import articles, news_api
from newsbot.models import utc_now

news_bp = Blueprint('news', __name__, url_prefix='/api/news')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
FRESH_FOR = timedelta(hours=1)


def _int_arg(name, default, maximum=None):
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, 1)
    return min(value, maximum) if maximum else value


def _recent(items):
    recent = []
    for item in items:
        try:
            published_at = articles.parse_published_at(item.get('publishedAt'))
        except ValueError:
            continue
        if articles.is_recent(published_at):
            recent.append(item)
    return recent


def _fetch_and_store(category, page, page_size):
    items = news_api.fetch_top_headlines(category=category, page=page, page_size=page_size)
    recent = _recent(items)
    return articles.store_provider_articles(recent), len(recent)


@news_bp.route('', methods=['GET'])
def list_news():
    category = request.args.get('category')
    search = request.args.get('search')
    page = _int_arg('page', 1)
    page_size = _int_arg('pageSize', DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)

    if search:
        results = news_api.search_news(search, page, page_size)
        recent = _recent(results)
        stored = articles.store_provider_articles(recent)
        return jsonify({
            'articles': [a.to_dict() for a in stored],
            'pagination': {'page': page, 'pageSize': page_size, 'hasMore': len(recent) == page_size},
        })

    query = articles.recent_articles_query(category)
    existing = query.offset((page - 1) * page_size).limit(page_size).all()
    fresh_since = utc_now() - FRESH_FOR
    if any(articles.as_utc(a.scraped_at) > fresh_since for a in existing):
        total = query.count()
        return jsonify({
            'articles': [a.to_dict() for a in existing],
            'pagination': {'page': page, 'pageSize': page_size, 'total': total,
                           'hasMore': page * page_size < total},
        })

    stored, fetched = _fetch_and_store(category, page, page_size)
    return jsonify({
        'articles': [a.to_dict() for a in stored],
        'pagination': {'page': page, 'pageSize': page_size, 'hasMore': fetched == page_size},
    })


@news_bp.route('', methods=['POST'])
def refresh_news():
    data = json_body()
    category = data.get('category') if isinstance(data.get('category'), str) else None
    page = data.get('page') if isinstance(data.get('page'), int) and data.get('page') > 0 else 1

    if data.get('forceRefresh'):
        articles.purge_stale_articles()

    stored, fetched = _fetch_and_store(category, page, DEFAULT_PAGE_SIZE)
    if category and category != 'all':
        stored = [a for a in stored if (a.category or '').lower() == category.lower()]
    return jsonify({
        'articles': [a.to_dict() for a in stored],
        'pagination': {'page': page, 'pageSize': DEFAULT_PAGE_SIZE, 'hasMore': fetched == DEFAULT_PAGE_SIZE},
    })
