import logging
from functools import wraps

from flask import g, jsonify
from flask_jwt_extended import create_access_token, get_jwt_identity, verify_jwt_in_request
from werkzeug.exceptions import BadRequest, Forbidden, Unauthorized

from quiz_backend import database
from quiz_backend.models import Role
from quiz_backend.utils.serializers import parse_object_id

logger = logging.getLogger(__name__)


def issue_token(user):
    return create_access_token(
        identity=str(user["_id"]),
        additional_claims={"username": user["username"], "role": user["role"]},
    )


def get_current_user():
    """User document for the session cookie on this request, without password."""
    if "current_user" in g:
        return g.current_user

    verify_jwt_in_request()
    try:
        user_id = parse_object_id(get_jwt_identity(), "user ID")
    except BadRequest:
        raise Unauthorized("Not authorized, token failed.")
    user = database.users_collection().find_one({"_id": user_id}, {"password": 0})
    if not user:
        raise Unauthorized("Not authorized, user no longer exists.")

    g.current_user = user
    g.current_role = Role.parse(user.get("role"))
    return user


def current_role():
    get_current_user()
    return g.current_role


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        get_current_user()
        return f(*args, **kwargs)
    return wrapper


def capability_required(capability):
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = get_current_user()
            if not current_role().can(capability):
                logger.warning(f"User {user['_id']} lacks {capability.value}")
                raise Forbidden("Not authorized")
            return f(*args, **kwargs)
        return wrapper
    return decorator


def register_jwt_handlers(jwt):
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"detail": "Not authorized, no token."}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        logger.warning(f"Rejected session token: {reason}")
        return jsonify({"detail": "Not authorized, token failed."}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"detail": "Session expired, please log in again."}), 401
