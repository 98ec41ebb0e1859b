import os

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from newsbot.errors import ApiError
from newsbot.models import db, NewsArticle, SavedArticle

load_dotenv()


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        db.session.rollback()
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", e)
        body = {'error': 'Internal server error'}
        if app.config['SHOW_ERROR_DETAILS']:
            body['details'] = str(e)
        return jsonify(body), 500


def register_commands(app):
    @app.cli.command('clear-news')
    def clear_news():
        """Delete every stored news article."""
        SavedArticle.query.delete()
        count = NewsArticle.query.delete()
        db.session.commit()
        click.echo(f"Deleted {count} articles")


def create_app(test_config=None):
    app = Flask(__name__)
    env = os.environ.get('NEWSBOT_ENV', 'development')
    app.config['ENV_NAME'] = env
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev_secret_key_change_in_prod')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///newsbot.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SHOW_ERROR_DETAILS'] = env != 'production'
    app.config['BCRYPT_LOG_ROUNDS'] = int(os.environ.get('BCRYPT_LOG_ROUNDS', 12))
    app.config['GEMINI_API_KEY'] = os.environ.get('GEMINI_API_KEY')
    app.config['GEMINI_MODEL'] = os.environ.get('GEMINI_MODEL', 'gemini-2.0-flash')
    app.config['NEWS_API_KEY'] = os.environ.get('NEWS_API_KEY')
    app.config['NEWS_RSS_URL'] = os.environ.get('NEWS_RSS_URL')
    app.config['SEARXNG_URL'] = os.environ.get('SEARXNG_URL')
    if test_config:
        app.config.update(test_config)

    if env == 'production' and app.config['SECRET_KEY'] == 'dev_secret_key_change_in_prod':
        app.logger.warning("SECRET_KEY is not set; sessions are signed with the development key")

    db.init_app(app)

    from newsbot.auth.routes import auth_bp
    from newsbot.api.chat import chat_bp
    from newsbot.api.chat_sessions import chat_sessions_bp
    from newsbot.api.news import news_bp
    from newsbot.api.saved_articles import saved_articles_bp
    from newsbot.api.scrape import scrape_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(saved_articles_bp)
    app.register_blueprint(chat_sessions_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(news_bp)
    app.register_blueprint(scrape_bp)

    register_error_handlers(app)
    register_commands(app)

    @app.route('/')
    def index():
        return jsonify({'message': 'NewsBot API running'})

    with app.app_context():
        db.create_all()

    return app


if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=5000)
