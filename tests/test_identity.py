from flask import session

from newsbot.auth.identity import Authenticated, UNAUTHENTICATED, resolve_identity


def test_no_session_is_unauthenticated(app):
    with app.test_request_context('/'):
        identity = resolve_identity()

    assert identity is UNAUTHENTICATED
    assert not identity


def test_session_values_resolve_to_authenticated(app):
    with app.test_request_context('/'):
        session['user_id'] = 'u1'
        session['user_email'] = 'reader@example.com'
        identity = resolve_identity()

    assert identity == Authenticated(user_id='u1', email='reader@example.com')
    assert identity


def test_malformed_session_is_unauthenticated(app):
    with app.test_request_context('/'):
        session['user_id'] = 42
        session['user_email'] = 'reader@example.com'
        assert resolve_identity() is UNAUTHENTICATED

        session['user_id'] = 'u1'
        session.pop('user_email')
        assert resolve_identity() is UNAUTHENTICATED
