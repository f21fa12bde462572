from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from flask import request
from werkzeug.exceptions import BadRequest


def to_json(value):
    """Make a Mongo document (or list of them) safe for jsonify."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def parse_object_id(value, label="ID"):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise BadRequest(f"Invalid {label} format")


def json_body():
    """JSON object sent with the request; an empty body reads as {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("Invalid request data")
    return data


def public_user(user):
    return {
        "id": str(user["_id"]),
        "username": user.get("username"),
        "email": user.get("email"),
        "role": user.get("role"),
    }
