import logging

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def abort_with(exc_class, message, **extra):
    """Raise a werkzeug HTTP exception whose JSON body carries ``extra`` fields."""
    error = exc_class(message)
    error.extra = extra
    raise error


def validation_details(error):
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        body = {"detail": e.description}
        body.update(getattr(e, "extra", None) or {})
        return jsonify(body), e.code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"detail": "Invalid request data", "errors": validation_details(e)}), 400

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return jsonify({"detail": "Internal server error"}), 500
