from datetime import datetime
from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from flask_wtf.csrf import CSRFError

from extensions import db


class ServiceError(Exception):
    """
    Raised by the service layer when a request cannot be fulfilled.

    Args:
        message (str): Human readable message returned to the client.
        status_code (int): HTTP status for the response. Defaults to 400.
        **payload: Extra keys merged into the JSON body (e.g. redirect_to_payment=True).
    """

    def __init__(self, message, status_code=400, **payload):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


def categorize_error(error, status_code):
    """
    Maps an exception (by type name) or a status code to a short category string.

    Returns:
        str: one of validation, authentication, authorization, not_found, database,
             csrf, client_error, server_error.
    """
    name = type(error).__name__
    if isinstance(error, CSRFError):
        return 'csrf'
    if isinstance(error, SQLAlchemyError):
        return 'database'
    if 'Validation' in name or status_code == 422:
        return 'validation'
    if status_code == 401:
        return 'authentication'
    if status_code == 403:
        return 'authorization'
    if status_code == 404:
        return 'not_found'
    if status_code >= 500:
        return 'server_error'
    if status_code == 400 and isinstance(error, ServiceError):
        return 'validation'
    return 'client_error'


def error_response(error, status_code, message, payload=None):
    """Builds the standard `{success: false, error: {...}}` JSON response."""
    body = {
        'success': False,
        'error': {
            'code': categorize_error(error, status_code),
            'message': message,
            'timestamp': datetime.utcnow().isoformat(),
        },
    }
    if current_app.debug:
        body['error']['details'] = repr(error)
        body['error']['original_error'] = type(error).__name__
    if payload:
        body.update(payload)
    return jsonify(body), status_code


def register_error_handlers(app):
    """Installs the JSON error handlers on the Flask app."""

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"Service error ({error.status_code}): {error.message}", exc_info=True)
        else:
            current_app.logger.warning(f"Request rejected ({error.status_code}): {error.message}")
        return error_response(error, error.status_code, error.message, error.payload)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        # Covers 401/403/404/405 raised by abort() and Werkzeug routing, plus CSRFError.
        status_code = error.code or 500
        current_app.logger.warning(f"HTTP {status_code}: {error.description}")
        return error_response(error, status_code, error.description)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        current_app.logger.error(f"Database error: {error}", exc_info=True)
        return error_response(error, 500, 'A database error occurred. Please try again later.')

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        current_app.logger.error(f"Unhandled error: {error}", exc_info=True)
        return error_response(error, 500, 'An unexpected error occurred. Please try again later.')
