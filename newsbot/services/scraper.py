from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from flask import current_app

from newsbot.errors import ScrapeError
from newsbot.services.articles import parse_published_at
from newsbot.services.text_processing import clean_text

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
}

CONTENT_SELECTORS = [
    'article p',
    '[data-component="ArticleBody"] p',
    '.article-body p',
    '.story-body p',
    '.story-body__element p',       # BBC
    '.content__article-body p',     # Guardian
    '.ArticleBody-articleBody p',   # Reuters
    '.article-content p',
    '.story-content p',
    '.post-content p',
    '.entry-content p',
    '.content p',
]

IMAGE_SELECTORS = [
    ('meta[property="og:image"]', 'content'),
    ('meta[name="twitter:image"]', 'content'),
    ('article img', 'src'),
    ('.article-image img', 'src'),
    ('.featured-image img', 'src'),
]

DATE_SELECTORS = [
    ('meta[property="article:published_time"]', 'content'),
    ('meta[name="pubdate"]', 'content'),
    ('meta[name="date"]', 'content'),
    ('time[datetime]', 'datetime'),
]

AUTHOR_SELECTORS = [
    ('meta[name="author"]', 'content'),
    ('meta[property="article:author"]', 'content'),
    ('[rel="author"]', None),
    ('.byline', None),
    ('.author', None),
]

MAX_PARAGRAPHS = 10


def fetch_article_content(url, timeout=10):
    """Downloads an article page and extracts its readable text.

    Returns a dict with content, imageUrl, publishedAt and author. Raises
    ScrapeError when the page cannot be fetched or has no usable text.
    """
    current_app.logger.info("Scraping article content: %s", url)
    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
    except requests.RequestException as e:
        raise ScrapeError(f"Failed to fetch {url}: {e}") from e
    if response.status_code != 200:
        raise ScrapeError(f"Failed to fetch {url}: HTTP {response.status_code}")

    soup = BeautifulSoup(response.content, 'html.parser')
    # metadata first, the cleanup below drops <header> blocks
    image_url = extract_image(soup, url)
    published_at = extract_published_at(soup)
    author = extract_author(soup)

    for tag in soup(["script", "style", "nav", "footer", "header", "aside"]):
        tag.extract()

    content = extract_content(soup)
    if not content:
        raise ScrapeError(f"No article text found at {url}")

    return {
        'content': content,
        'imageUrl': image_url,
        'publishedAt': published_at,
        'author': author,
    }


def extract_content(soup):
    for selector in CONTENT_SELECTORS:
        paragraphs = [clean_text(p.get_text()) for p in soup.select(selector)]
        # short lines are usually captions, ads or navigation
        paragraphs = [p for p in paragraphs
                      if len(p) > 20 and 'Read more' not in p and 'Subscribe' not in p]
        if paragraphs:
            return "\n\n".join(paragraphs[:MAX_PARAGRAPHS])

    # Fall back to every paragraph on the page
    text = " ".join(p.get_text() for p in soup.find_all('p'))
    return clean_text(text)


def _first_attr(soup, selectors):
    for selector, attr in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        value = element.get(attr) if attr else element.get_text()
        if value and value.strip():
            return value.strip()
    return None


def extract_image(soup, base_url):
    src = _first_attr(soup, IMAGE_SELECTORS)
    if not src:
        return None
    return urljoin(base_url, src)


def extract_published_at(soup):
    value = _first_attr(soup, DATE_SELECTORS)
    if not value:
        return None
    try:
        return parse_published_at(value).isoformat()
    except ValueError:
        return None


def extract_author(soup):
    author = _first_attr(soup, AUTHOR_SELECTORS)
    if author and len(author) < 100:
        return clean_text(author)
    return None
