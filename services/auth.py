"""Session identity on top of Flask-Login."""
import logging

from flask import jsonify
from flask_login import LoginManager, current_user, login_user, logout_user
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db, User

logger = logging.getLogger(__name__)

login_manager = LoginManager()

DUPLICATE_USERNAME = 'Nome utente già in uso.'
MISSING_FIELDS = 'Nome, nome utente e password sono obbligatori.'
REGISTRATION_FAILED = 'Si è verificato un errore durante la registrazione.'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Autenticazione richiesta.'}), 401


def _find_user(username):
    return db.session.execute(select(User).where(User.username == username)).scalar_one_or_none()


def login(username, password) -> bool:
    if not username or not password:
        return False
    user = _find_user(username)
    if user is None or not user.check_password(password):
        logger.info(f"Failed login for {username!r}")
        return False
    login_user(user)
    return True


def register(profile):
    """Create a 'user' account and log it in.

    Returns {'success': True} or {'success': False, 'message': ...}.
    """
    profile = profile or {}
    username = (profile.get('username') or '').strip()
    name = (profile.get('name') or '').strip()
    password = profile.get('password') or ''
    if not username or not name or not password:
        return {'success': False, 'message': MISSING_FIELDS}
    if _find_user(username) is not None:
        return {'success': False, 'message': DUPLICATE_USERNAME}

    user = User(username=username, name=name, role='user')
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return {'success': False, 'message': DUPLICATE_USERNAME}
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Registration failed: {e}")
        return {'success': False, 'message': REGISTRATION_FAILED}

    login_user(user)
    logger.info(f"Registered profile {user.id} ({username})")
    return {'success': True}


def logout():
    logout_user()


def is_authenticated() -> bool:
    return bool(current_user and current_user.is_authenticated)


def current_profile():
    """{id, name, username, role} of the logged-in user, or None."""
    if not is_authenticated():
        return None
    return {
        'id': current_user.id,
        'name': current_user.name,
        'username': current_user.username,
        'role': current_user.role,
    }
