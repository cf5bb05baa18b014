from flask import Blueprint, current_app, jsonify

from models import db
from services.exceptions import (
    ConstraintViolationError, MalformedKeyError, NotFoundError, StorageError,
)

bp = Blueprint('errors', __name__)


@bp.app_errorhandler(MalformedKeyError)
def malformed_key_error(error):
    return jsonify({'error': error.message}), 400


@bp.app_errorhandler(NotFoundError)
def not_found(error):
    return jsonify({'error': error.message}), 404


@bp.app_errorhandler(ConstraintViolationError)
def constraint_violation(error):
    current_app.logger.info(f"Write rejected: {error.message}")
    return jsonify({'error': error.message}), 409


@bp.app_errorhandler(StorageError)
def storage_error(error):
    current_app.logger.error(f"Storage failure: {error.message}")
    return jsonify({'error': 'Errore di accesso ai dati.'}), 502


@bp.app_errorhandler(404)
def not_found_error(error):
    return jsonify({'error': 'Resource not found'}), 404


@bp.app_errorhandler(405)
def method_not_allowed(error):
    return jsonify({'error': 'Method not allowed'}), 405


@bp.app_errorhandler(413)
def too_large(error):
    return jsonify({'error': 'File troppo grande.'}), 413


@bp.app_errorhandler(500)
def internal_error(error):
    db.session.rollback()
    current_app.logger.error(f"Unhandled error: {getattr(error, 'original_exception', error)}")
    return jsonify({'error': 'An internal error occurred'}), 500
