from flask import Blueprint, jsonify

from newsbot.api.helpers import json_body
from newsbot.auth.identity import resolve_identity
from newsbot.errors import ValidationError
from newsbot.models import db, User
from newsbot.services import ai_service, articles, chat_sessions
from newsbot.services.text_processing import format_news_for_context, strip_search_prefix

chat_bp = Blueprint('chat', __name__, url_prefix='/api/chat')

CONTEXT_ARTICLE_LIMIT = 15


def context_articles(selected):
    """Selected articles may be full objects or ids of stored articles."""
    if not selected:
        return [a.to_dict() for a in articles.latest_articles(CONTEXT_ARTICLE_LIMIT)]
    if not isinstance(selected, list):
        raise ValidationError('selectedArticles must be a list')

    resolved = []
    for item in selected:
        if isinstance(item, dict):
            resolved.append(item)
        elif isinstance(item, str):
            article = articles.get_article(item)
            if article is not None:
                resolved.append(article.to_dict())
    return resolved


@chat_bp.route('', methods=['POST'])
def chat():
    data = json_body()
    message = data.get('message')
    if not message or not isinstance(message, str):
        raise ValidationError('Message is required')

    selected = data.get('selectedArticles')
    session_id = data.get('sessionId')

    # Anonymous callers can chat, only signed-in users get history
    user = None
    identity = resolve_identity()
    if identity:
        user = db.session.get(User, identity.user_id)

    # resolve the selection first so a bad one leaves no session behind
    news_context = format_news_for_context(context_articles(selected))

    chat_session = None
    if user is not None:
        if session_id:
            chat_session = chat_sessions.get_session(user.id, session_id)
        else:
            chat_session = chat_sessions.create_session(user.id)

    search_context = ""
    is_web_search = bool(data.get('isWebSearch'))
    if is_web_search:
        query = strip_search_prefix(message)
        search_context = ai_service.format_search_results(query, ai_service.web_search(query))

    reply = ai_service.generate_reply(message, news_context, search_context, is_web_search)

    if chat_session is not None:
        chat_sessions.append_messages(chat_session, [('user', message), ('assistant', reply)])

    return jsonify({'response': reply, 'sessionId': chat_session.id if chat_session else None})
