import bcrypt
from flask import Blueprint, current_app, g, jsonify, session

from newsbot.api.helpers import json_body
from newsbot.auth.identity import login_required
from newsbot.errors import ValidationError, NotFound, Unauthorized
from newsbot.models import db, User

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password):
    rounds = current_app.config.get('BCRYPT_LOG_ROUNDS', 12)
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


def check_password(password, password_hash):
    if not password_hash or len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


@auth_bp.route('/signup', methods=['POST'])
def signup():
    data = json_body()
    name = data.get('name')
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        raise ValidationError('Email and password are required')
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError('Email and password must be strings')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValidationError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes long')

    # Existing clients expect 400 here, not 409
    if User.query.filter_by(email=email).first():
        raise ValidationError('User with this email already exists')

    user = User(
        name=name or email.split('@')[0],
        email=email,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Created user %s", user.id)

    return jsonify({'message': 'User created successfully', 'user': user.to_dict()})


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    email = data.get('email')
    password = data.get('password')
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError('Email and password are required')

    user = User.query.filter_by(email=email).first()
    if user is None or not check_password(password, user.password_hash):
        raise Unauthorized('Invalid email or password')

    session.clear()
    session['user_id'] = user.id
    session['user_email'] = user.email
    session['user_name'] = user.name
    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    user = db.session.get(User, g.identity.user_id)
    if user is None:
        raise NotFound('User not found')
    return jsonify({'user': user.to_dict()})
