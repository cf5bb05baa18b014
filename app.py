import os
import logging

from dotenv import load_dotenv
from flask import Flask
from flask_migrate import Migrate
from sqlalchemy import select

import filters
from models import db, FirmProfile, User, FIRM_PROFILE_ID
from services.auth import login_manager
from services.cache import KeyCache
from services.fetcher import fetch

migrate = Migrate()

DEFAULT_FIRM_PROFILE = {
    'name': "Il Tuo Studio Legale",
    'address': "Via Roma, 1, 00100 Roma (RM)",
    'vat_number': "IT12345678901",
    'email': "info@tuostudiolegale.it",
    'phone': "06 1234567",
    'logo_url': "",
}


def _database_url():
    DATABASE_URL = os.getenv('DATABASE_URL')
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)
    return DATABASE_URL or 'sqlite:///lawdesk.db'


def seed_defaults(app):
    """Make sure the firm profile singleton and the admin account exist."""
    if db.session.get(FirmProfile, FIRM_PROFILE_ID) is None:
        db.session.add(FirmProfile(id=FIRM_PROFILE_ID, **DEFAULT_FIRM_PROFILE))
        app.logger.info("Created default firm profile")

    username = app.config['ADMIN_USERNAME']
    if username and db.session.execute(select(User).where(User.username == username)).scalar_one_or_none() is None:
        admin = User(username=username, name='Amministratore', role='admin')
        admin.set_password(app.config['ADMIN_PASSWORD'])
        db.session.add(admin)
        if app.config['ADMIN_PASSWORD'] == 'admin':
            app.logger.warning("Admin account created with the default password; set ADMIN_PASSWORD")
        else:
            app.logger.info(f"Created admin account '{username}'")
    db.session.commit()


def create_app(config_overrides=None):
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=os.getenv('SECRET_KEY', 'dev-key-change-in-production'),
        SQLALCHEMY_DATABASE_URI=_database_url(),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        MAX_CONTENT_LENGTH=int(os.getenv('MAX_CONTENT_LENGTH', 16 * 1024 * 1024)),  # 16MB default
        PERMANENT_SESSION_LIFETIME=3600,  # 1 hour in seconds
        GEMINI_API_KEY=os.getenv('GEMINI_API_KEY'),
        GEMINI_MODEL=os.getenv('GEMINI_MODEL', 'gemini-2.5-flash'),
        GEMINI_API_URL=os.getenv('GEMINI_API_URL', 'https://generativelanguage.googleapis.com/v1beta/models'),
        LOG_LEVEL=os.getenv('LOG_LEVEL', 'INFO'),
        ADMIN_USERNAME=os.getenv('ADMIN_USERNAME', 'admin'),
        ADMIN_PASSWORD=os.getenv('ADMIN_PASSWORD', 'admin'),
        SEED_DEFAULTS=os.getenv('SEED_DEFAULTS', '1').lower() not in ('0', 'false', 'no'),
    )
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Register blueprints and routes
    import routes
    app.register_blueprint(routes.bp)

    # Register error handlers
    from errors import bp as errors_bp
    app.register_blueprint(errors_bp)

    # Register filters
    filters.init_app(app)

    # One read cache per application, shared by every request thread
    app.extensions['key_cache'] = KeyCache(fetch)

    with app.app_context():
        db.create_all()
        if app.config['SEED_DEFAULTS']:
            seed_defaults(app)

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=5000, debug=True)
