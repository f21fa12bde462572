import logging
import re
from datetime import datetime, timedelta, timezone

from flask import Blueprint, jsonify, request
from pymongo import DESCENDING, ReturnDocument
from werkzeug.exceptions import BadRequest, NotFound

from quiz_backend import database
from quiz_backend.dependencies import capability_required
from quiz_backend.models import Capability, Role
from quiz_backend.utils.aggregations import (
    active_users_pipeline,
    average_score_pipeline,
    daily_registrations_pipeline,
    daily_submissions_pipeline,
    score_distribution_pipeline,
)
from quiz_backend.utils.pagination import page_args, total_pages
from quiz_backend.utils.serializers import json_body, parse_object_id, to_json

logger = logging.getLogger(__name__)

router = Blueprint("admin_users", __name__, url_prefix="/api/admin")

TREND_DAYS = 30


@router.route("/users", methods=["GET"])
@capability_required(Capability.MANAGE_USERS)
def get_users():
    page, limit, skip = page_args()
    query = {}

    role = request.args.get("role")
    if role:
        query["role"] = role
    search = request.args.get("search")
    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"username": {"$regex": pattern, "$options": "i"}},
            {"email": {"$regex": pattern, "$options": "i"}},
        ]

    users_collection = database.users_collection()
    users = list(
        users_collection.find(query, {"password": 0})
        .sort("createdAt", DESCENDING)
        .skip(skip)
        .limit(limit)
    )
    total = users_collection.count_documents(query)

    return jsonify({
        "users": to_json(users),
        "totalPages": total_pages(total, limit),
        "currentPage": page,
        "totalUsers": total,
    }), 200


@router.route("/users/<user_id>/role", methods=["PUT"])
@capability_required(Capability.MANAGE_USERS)
def update_user_role(user_id):
    data = json_body()
    try:
        role = Role(data.get("role"))
    except ValueError:
        raise BadRequest(f"Role must be one of: {', '.join(r.value for r in Role)}")

    user = database.users_collection().find_one_and_update(
        {"_id": parse_object_id(user_id, "user ID")},
        {"$set": {"role": role.value, "updatedAt": datetime.now(timezone.utc)}},
        projection={"password": 0},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise NotFound("User not found")

    logger.info(f"User {user_id} role changed to {role.value}")
    return jsonify({"message": "User role updated successfully", "user": to_json(user)}), 200


@router.route("/users/<user_id>", methods=["DELETE"])
@capability_required(Capability.MANAGE_USERS)
def delete_user(user_id):
    object_id = parse_object_id(user_id, "user ID")
    result = database.users_collection().delete_one({"_id": object_id})
    if result.deleted_count == 0:
        raise NotFound("User not found")

    removed = database.submissions_collection().delete_many({"user": object_id})
    logger.info(f"User {user_id} deleted with {removed.deleted_count} submission(s)")
    return jsonify({"message": "User deleted successfully"}), 200


@router.route("/analytics", methods=["GET"])
@capability_required(Capability.MANAGE_USERS)
def get_analytics():
    users = database.users_collection()
    submissions = database.submissions_collection()
    since = datetime.now(timezone.utc) - timedelta(days=TREND_DAYS)

    average = list(submissions.aggregate(average_score_pipeline()))
    average_score = round(average[0]["avg"], 2) if average and average[0].get("avg") is not None else 0

    submission_trend = list(submissions.aggregate(daily_submissions_pipeline(since)))
    for day in submission_trend:
        day["averageScore"] = round(day.get("averageScore") or 0, 2)

    return jsonify({
        "overview": {
            "totalUsers": users.count_documents({}),
            "totalSubmissions": submissions.count_documents({}),
            "averageScore": average_score,
        },
        "trends": {
            "registrations": list(users.aggregate(daily_registrations_pipeline(since))),
            "submissions": submission_trend,
        },
        "activeUsers": to_json(list(submissions.aggregate(active_users_pipeline()))),
        "scoreDistribution": list(submissions.aggregate(score_distribution_pipeline())),
    }), 200
