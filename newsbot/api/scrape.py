from urllib.parse import urlparse

from flask import Blueprint, current_app, jsonify, request

from newsbot.api.helpers import json_body
from newsbot.errors import ScrapeError, ValidationError
from newsbot.services.scraper import fetch_article_content

scrape_bp = Blueprint('scrape', __name__, url_prefix='/api')


def is_valid_url(url):
    parsed = urlparse(url)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def scrape_failed(e):
    current_app.logger.error("Error scraping article content: %s", e)
    body = {'error': 'Failed to scrape article content'}
    if current_app.config['SHOW_ERROR_DETAILS']:
        body['details'] = str(e)
    return jsonify(body), 500


@scrape_bp.route('/test-scrape', methods=['GET'])
def test_scrape():
    url = request.args.get('url')
    if not url:
        raise ValidationError('url query parameter is required')

    try:
        content = fetch_article_content(url)
    except ScrapeError as e:
        current_app.logger.error("Test scrape failed: %s", e)
        return jsonify({'error': str(e)}), 500
    return jsonify({'success': True, 'url': url, **content})


@scrape_bp.route('/scrape-article', methods=['POST'])
def scrape_article():
    url = json_body().get('url')
    if not url or not isinstance(url, str):
        raise ValidationError('Valid article URL is required')
    if not is_valid_url(url):
        raise ValidationError('Invalid URL format')

    try:
        content = fetch_article_content(url)
    except ScrapeError as e:
        return scrape_failed(e)
    return jsonify({'success': True, 'url': url, **content})
