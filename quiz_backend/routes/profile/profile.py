import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from flask_jwt_extended import unset_jwt_cookies
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, NotFound

from quiz_backend import database
from quiz_backend.dependencies import get_current_user, login_required
from quiz_backend.models import ProfileUpdate
from quiz_backend.routes.auth.auth import hash_password
from quiz_backend.utils.serializers import json_body, public_user, to_json

logger = logging.getLogger(__name__)

router = Blueprint("profile", __name__, url_prefix="/api/auth")


@router.route("/profile", methods=["GET"])
@login_required
def get_profile():
    user = get_current_user()
    profile = public_user(user)
    profile["createdAt"] = user.get("createdAt")
    return jsonify(to_json(profile)), 200


@router.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    user = get_current_user()
    payload = ProfileUpdate(**json_body())

    update_data = {}
    if payload.username:
        update_data["username"] = payload.username
    if payload.email:
        update_data["email"] = payload.email
    if payload.password:
        update_data["password"] = hash_password(payload.password)
    update_data["updatedAt"] = datetime.now(timezone.utc)

    try:
        updated = database.users_collection().find_one_and_update(
            {"_id": user["_id"]},
            {"$set": update_data},
            projection={"password": 0},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise BadRequest("Username or email already exists.")

    if not updated:
        raise NotFound("User not found.")

    return jsonify({"message": "Profile updated successfully!", "user": public_user(updated)}), 200


@router.route("/profile", methods=["DELETE"])
@login_required
def delete_profile():
    user = get_current_user()

    result = database.users_collection().delete_one({"_id": user["_id"]})
    if result.deleted_count == 0:
        raise NotFound("User not found.")
    database.submissions_collection().delete_many({"user": user["_id"]})
    logger.info(f"User {user['_id']} deleted their account")

    response = jsonify({"message": "User account deleted successfully."})
    unset_jwt_cookies(response)
    return response, 200
