from dataclasses import dataclass
from functools import wraps

from flask import session, g

from newsbot.errors import Unauthorized


@dataclass(frozen=True)
class Authenticated:
    user_id: str
    email: str


class Unauthenticated:
    def __bool__(self):
        return False

    def __repr__(self):
        return 'UNAUTHENTICATED'


UNAUTHENTICATED = Unauthenticated()


def resolve_identity():
    """Returns the caller's identity from the signed session cookie.

    A missing or tampered session is a normal outcome and yields
    UNAUTHENTICATED instead of raising.
    """
    user_id = session.get('user_id')
    email = session.get('user_email')
    if not isinstance(user_id, str) or not user_id:
        return UNAUTHENTICATED
    if not isinstance(email, str) or not email:
        return UNAUTHENTICATED
    return Authenticated(user_id=user_id, email=email)


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        identity = resolve_identity()
        if not identity:
            raise Unauthorized()
        g.identity = identity
        return view(*args, **kwargs)
    return wrapped
