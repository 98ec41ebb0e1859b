from flask import Blueprint, g, jsonify, request

from newsbot.api.helpers import json_body
from newsbot.auth.identity import login_required
from newsbot.errors import ValidationError
from newsbot.services import saved_articles

saved_articles_bp = Blueprint('saved_articles', __name__, url_prefix='/api/saved-articles')


@saved_articles_bp.route('', methods=['GET'])
@login_required
def list_saved():
    saved = saved_articles.list_saved_articles(g.identity.user_id)
    return jsonify([s.to_dict() for s in saved])


@saved_articles_bp.route('', methods=['POST'])
@login_required
def save():
    data = json_body()
    article_id = data.get('articleId')
    article_data = data.get('article')
    notes = data.get('notes')

    if not article_id:
        raise ValidationError('Article ID is required')
    if article_data is not None and not isinstance(article_data, dict):
        raise ValidationError('article must be an object')
    if notes is not None and not isinstance(notes, str):
        raise ValidationError('notes must be a string')

    saved = saved_articles.save_article(g.identity.user_id, article_id,
                                        article_data=article_data, notes=notes)
    return jsonify(saved.to_dict())


@saved_articles_bp.route('', methods=['DELETE'])
@login_required
def remove():
    article_id = request.args.get('articleId')
    if not article_id:
        raise ValidationError('Article ID is required')

    saved_articles.remove_saved_article(g.identity.user_id, article_id)
    return jsonify({'message': 'Article removed from saved list'})
