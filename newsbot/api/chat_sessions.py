from flask import Blueprint, g, jsonify

from newsbot.api.helpers import json_body
from newsbot.auth.identity import login_required
from newsbot.errors import ValidationError
from newsbot.services import chat_sessions

chat_sessions_bp = Blueprint('chat_sessions', __name__, url_prefix='/api/chat-sessions')


def current_user():
    return chat_sessions.get_user_by_email(g.identity.email)


def title_from(data):
    title = data.get('title')
    if title is not None and not isinstance(title, str):
        raise ValidationError('title must be a string')
    return title


@chat_sessions_bp.route('', methods=['GET'])
@login_required
def list_sessions():
    user = current_user()
    return jsonify([s.to_dict() for s in chat_sessions.list_sessions(user.id)])


@chat_sessions_bp.route('', methods=['POST'])
@login_required
def create_session():
    user = current_user()
    data = json_body()
    chat_session = chat_sessions.create_session(
        user.id,
        title=title_from(data),
        selected_articles=data.get('selectedArticles'),
    )
    return jsonify(chat_session.to_dict()), 201


@chat_sessions_bp.route('/<session_id>', methods=['GET'])
@login_required
def get_session(session_id):
    user = current_user()
    return jsonify(chat_sessions.get_session(user.id, session_id).to_dict())


@chat_sessions_bp.route('/<session_id>', methods=['PUT'])
@login_required
def update_session(session_id):
    user = current_user()
    data = json_body()
    chat_session = chat_sessions.update_session(
        user.id, session_id,
        title=title_from(data),
        is_active=data.get('isActive'),
    )
    return jsonify(chat_session.to_dict())


@chat_sessions_bp.route('/<session_id>', methods=['DELETE'])
@login_required
def delete_session(session_id):
    user = current_user()
    chat_sessions.delete_session(user.id, session_id)
    return jsonify({'success': True})
