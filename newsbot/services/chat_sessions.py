import json
from datetime import datetime, timedelta

from newsbot.errors import ValidationError, NotFound
from newsbot.models import db, User, ChatSession, ChatMessage, utc_now


def get_user_by_email(email):
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise NotFound('User not found')
    return user


def serialize_selected_articles(selected):
    """Stores the selection as a JSON array of article ids, or None."""
    if selected is None:
        return None
    if not isinstance(selected, list):
        raise ValidationError('selectedArticles must be a list')
    ids = []
    for item in selected:
        if isinstance(item, dict):
            item = item.get('id')
        if not isinstance(item, str) or not item:
            raise ValidationError('selectedArticles must contain article ids')
        ids.append(item)
    return json.dumps(ids)


def default_title():
    return f"Chat {datetime.now().strftime('%x')}"


def list_sessions(user_id):
    return (ChatSession.query
            .filter_by(user_id=user_id)
            .order_by(ChatSession.updated_at.desc())
            .all())


def deactivate_sessions(user_id):
    ChatSession.query.filter_by(user_id=user_id).update(
        {'is_active': False}, synchronize_session='fetch')


def create_session(user_id, title=None, selected_articles=None):
    # Concurrent creates for one user can briefly leave two active sessions;
    # there is no lock around the update + insert pair.
    selection = serialize_selected_articles(selected_articles)
    deactivate_sessions(user_id)
    chat_session = ChatSession(
        user_id=user_id,
        title=title or default_title(),
        is_active=True,
        selected_articles=selection,
    )
    db.session.add(chat_session)
    db.session.commit()
    return chat_session


def get_session(user_id, session_id):
    chat_session = ChatSession.query.filter_by(id=session_id, user_id=user_id).first()
    if chat_session is None:
        raise NotFound('Chat session not found')
    return chat_session


def update_session(user_id, session_id, title=None, is_active=None):
    chat_session = get_session(user_id, session_id)
    if is_active is True:
        deactivate_sessions(user_id)
    if title:
        chat_session.title = title
    if isinstance(is_active, bool):
        chat_session.is_active = is_active
    chat_session.updated_at = utc_now()
    db.session.commit()
    return chat_session


def delete_session(user_id, session_id):
    chat_session = get_session(user_id, session_id)
    db.session.delete(chat_session)
    db.session.commit()


def append_messages(chat_session, messages):
    """Appends (role, content) pairs in order and marks the session as updated."""
    now = utc_now()
    for offset, (role, content) in enumerate(messages):
        # distinct timestamps keep the pair ordered
        db.session.add(ChatMessage(session_id=chat_session.id, role=role, content=content,
                                   timestamp=now + timedelta(microseconds=offset)))
    chat_session.updated_at = now
    db.session.commit()
