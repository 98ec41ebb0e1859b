import urllib.parse
from datetime import datetime, timedelta, timezone
from io import BytesIO

import feedparser
import requests
from flask import current_app

NEWS_API_BASE_URL = "https://newsapi.org/v2"
DEFAULT_RSS_URL = "https://news.google.com/rss"
HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
}
NEWS_API_CATEGORIES = {'business', 'entertainment', 'general', 'health', 'science', 'sports', 'technology'}


def _news_api_key():
    return current_app.config.get('NEWS_API_KEY')


def _normalize_news_api(article, category):
    source = article.get('source') or {}
    return {
        'title': article.get('title'),
        'description': article.get('description'),
        'content': article.get('content'),
        'url': article.get('url'),
        'urlToImage': article.get('urlToImage'),
        'source': source.get('name') if isinstance(source, dict) else source,
        'publishedAt': article.get('publishedAt'),
        'category': category or 'general',
    }


def _get_news_api(path, params, category):
    params = dict(params, apiKey=_news_api_key())
    url = f"{NEWS_API_BASE_URL}/{path}"
    try:
        response = requests.get(url, params=params, headers=HEADERS, timeout=10)
    except requests.RequestException as e:
        current_app.logger.warning("NewsAPI request failed: %s", e)
        return []
    if response.status_code != 200:
        current_app.logger.warning("NewsAPI returned %s: %s", response.status_code, response.text[:200])
        return []
    try:
        payload = response.json()
    except ValueError as e:
        current_app.logger.warning("NewsAPI returned a non-JSON body: %s", e)
        return []
    if not isinstance(payload, dict):
        return []
    return [_normalize_news_api(a, category) for a in payload.get('articles') or []
            if isinstance(a, dict) and a.get('url') and a.get('title')]


def fetch_from_news_api(category=None, page=1, page_size=20):
    if category and category in NEWS_API_CATEGORIES:
        params = {'country': 'us', 'category': category, 'page': page, 'pageSize': page_size}
        return _get_news_api('top-headlines', params, category)

    since = datetime.now(timezone.utc) - timedelta(days=1)
    params = {
        'q': 'breaking OR latest OR news OR headlines OR world OR national',
        'sortBy': 'publishedAt',
        'language': 'en',
        'from': since.strftime('%Y-%m-%dT%H:%M:%S'),
        'page': page,
        'pageSize': page_size,
    }
    return _get_news_api('everything', params, category)


def _rss_published(entry):
    parsed = entry.get('published_parsed')
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()


def fetch_from_rss(query=None, category=None, limit=20):
    base = current_app.config.get('NEWS_RSS_URL') or DEFAULT_RSS_URL
    if query or (category and category != 'all'):
        term = urllib.parse.quote(query or category)
        rss_url = f"{base}/search?q={term}&hl=en-US&gl=US&ceid=US:en"
    else:
        rss_url = f"{base}?hl=en-US&gl=US&ceid=US:en"

    current_app.logger.info("Fetching RSS feed: %s", rss_url)
    try:
        response = requests.get(rss_url, headers=HEADERS, timeout=10)
    except requests.RequestException as e:
        current_app.logger.warning("RSS request failed: %s", e)
        return []
    if response.status_code != 200:
        current_app.logger.warning("RSS feed returned %s", response.status_code)
        return []

    feed = feedparser.parse(BytesIO(response.content))
    articles = []
    for entry in feed.entries[:limit]:
        title = entry.get('title', '')
        source = entry.get('source', {}).get('title') if entry.get('source') else None
        # Google News appends " - Publisher" to headlines
        if source and title.endswith(f" - {source}"):
            title = title[:-len(source) - 3]
        if not entry.get('link') or not title:
            continue
        articles.append({
            'title': title.strip(),
            'description': entry.get('summary'),
            'content': None,
            'url': entry['link'],
            'urlToImage': None,
            'source': source or 'Google News',
            'publishedAt': _rss_published(entry),
            'category': category if category and category != 'all' else 'general',
        })
    return articles


def dedupe_and_sort(articles):
    seen = set()
    unique = []
    for article in articles:
        if article['url'] in seen:
            continue
        seen.add(article['url'])
        unique.append(article)
    unique.sort(key=lambda a: a.get('publishedAt') or '', reverse=True)
    return unique


def fetch_top_headlines(category=None, page=1, page_size=20):
    """Latest headlines from NewsAPI when configured, Google News RSS otherwise."""
    if category == 'all':
        category = None
    articles = []
    if _news_api_key():
        articles = fetch_from_news_api(category, page, page_size)
        current_app.logger.info("NewsAPI returned %d articles", len(articles))
    if not articles:
        articles = fetch_from_rss(category=category, limit=page_size)
    return dedupe_and_sort(articles)[:page_size]


def search_news(query, page=1, page_size=20):
    if _news_api_key():
        params = {'q': query, 'sortBy': 'publishedAt', 'language': 'en',
                  'page': page, 'pageSize': page_size}
        articles = _get_news_api('everything', params, 'general')
        if articles:
            return dedupe_and_sort(articles)
    return dedupe_and_sort(fetch_from_rss(query=query, limit=page_size))
