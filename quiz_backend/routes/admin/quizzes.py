import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from pymongo import DESCENDING, ReturnDocument
from werkzeug.exceptions import BadRequest, NotFound

from quiz_backend import database
from quiz_backend.dependencies import capability_required, get_current_user
from quiz_backend.models import Capability, QuizPayload, QuizStatusPayload
from quiz_backend.utils.pagination import page_args, total_pages
from quiz_backend.utils.serializers import json_body, parse_object_id, to_json

logger = logging.getLogger(__name__)

router = Blueprint("admin_quizzes", __name__, url_prefix="/api/admin")


def owned_quiz(quiz_id):
    """Quiz ``quiz_id`` if the current admin created it, else 404."""
    quiz = database.quizzes_collection().find_one({
        "_id": parse_object_id(quiz_id, "quiz ID"),
        "createdBy": get_current_user()["_id"],
    })
    if not quiz:
        raise NotFound("Quiz not found or access denied")
    return quiz


def ordered_questions(quiz, projection=None):
    """Question documents of ``quiz`` in the order the quiz lists them."""
    ids = quiz.get("questions", [])
    if not ids:
        return []
    found = {
        q["_id"]: q
        for q in database.questions_collection().find({"_id": {"$in": ids}}, projection)
    }
    return [found[qid] for qid in ids if qid in found]


def quiz_with_questions(quiz, projection=None):
    quiz = dict(quiz)
    quiz["questions"] = ordered_questions(quiz, projection)
    return quiz


@router.route("/quiz", methods=["POST"])
@capability_required(Capability.MANAGE_QUIZZES)
def create_quiz():
    data = json_body()
    if not data.get("title") or not data.get("description"):
        raise BadRequest("Title and description are required")
    payload = QuizPayload(**data)

    now = datetime.now(timezone.utc)
    quiz = {
        "title": payload.title,
        "description": payload.description,
        "createdBy": get_current_user()["_id"],
        "questions": [],
        "isActive": False,
        "createdAt": now,
        "updatedAt": now,
    }
    result = database.quizzes_collection().insert_one(quiz)
    quiz["_id"] = result.inserted_id
    logger.info(f"Quiz {result.inserted_id} created")

    return jsonify({
        "success": True,
        "message": "Quiz created successfully",
        "data": {"quiz": to_json(quiz)},
    }), 201


@router.route("/quizzes", methods=["GET"])
@capability_required(Capability.MANAGE_QUIZZES)
def get_quizzes():
    page, limit, skip = page_args()
    query = {"createdBy": get_current_user()["_id"]}

    quizzes = list(
        database.quizzes_collection()
        .find(query)
        .sort("createdAt", DESCENDING)
        .skip(skip)
        .limit(limit)
    )
    quizzes = [quiz_with_questions(q, {"questionText": 1}) for q in quizzes]
    total = database.quizzes_collection().count_documents(query)
    pages = total_pages(total, limit)

    return jsonify({
        "success": True,
        "data": {
            "quizzes": to_json(quizzes),
            "pagination": {
                "currentPage": page,
                "totalPages": pages,
                "totalQuizzes": total,
                "hasNext": page < pages,
                "hasPrev": page > 1,
            },
        },
    }), 200


@router.route("/quiz/<quiz_id>", methods=["GET"])
@capability_required(Capability.MANAGE_QUIZZES)
def get_quiz(quiz_id):
    quiz = quiz_with_questions(owned_quiz(quiz_id))
    return jsonify({"success": True, "data": {"quiz": to_json(quiz)}}), 200


@router.route("/quiz/<quiz_id>", methods=["PUT"])
@capability_required(Capability.MANAGE_QUIZZES)
def update_quiz(quiz_id):
    data = json_body()
    if not data.get("title") or not data.get("description"):
        raise BadRequest("Title and description are required")
    payload = QuizPayload(**data)

    quiz = database.quizzes_collection().find_one_and_update(
        {"_id": owned_quiz(quiz_id)["_id"]},
        {"$set": {
            "title": payload.title,
            "description": payload.description,
            "updatedAt": datetime.now(timezone.utc),
        }},
        return_document=ReturnDocument.AFTER,
    )

    return jsonify({
        "success": True,
        "message": "Quiz updated successfully",
        "data": {"quiz": to_json(quiz_with_questions(quiz))},
    }), 200


@router.route("/quiz/<quiz_id>/status", methods=["PATCH"])
@capability_required(Capability.MANAGE_QUIZZES)
def update_quiz_status(quiz_id):
    data = json_body()
    if not isinstance(data.get("isActive"), bool):
        raise BadRequest("isActive must be a boolean value")
    payload = QuizStatusPayload(**data)

    quiz = owned_quiz(quiz_id)
    if payload.isActive and not quiz.get("questions"):
        raise BadRequest("Cannot activate quiz without questions")

    quiz = database.quizzes_collection().find_one_and_update(
        {"_id": quiz["_id"]},
        {"$set": {"isActive": payload.isActive, "updatedAt": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )

    return jsonify({
        "success": True,
        "message": f"Quiz {'activated' if payload.isActive else 'deactivated'} successfully",
        "data": {"quiz": to_json(quiz_with_questions(quiz))},
    }), 200


@router.route("/quiz/<quiz_id>", methods=["DELETE"])
@capability_required(Capability.MANAGE_QUIZZES)
def delete_quiz(quiz_id):
    quiz = owned_quiz(quiz_id)

    database.quizzes_collection().delete_one({"_id": quiz["_id"]})
    database.questions_collection().delete_many({"quiz": quiz["_id"]})
    removed = database.submissions_collection().delete_many({"quiz": quiz["_id"]})
    logger.info(f"Quiz {quiz['_id']} deleted with {removed.deleted_count} submission(s)")

    return jsonify({
        "success": True,
        "message": "Quiz and associated questions deleted successfully",
    }), 200


@router.route("/quiz/<quiz_id>/stats", methods=["GET"])
@capability_required(Capability.MANAGE_QUIZZES)
def get_quiz_stats(quiz_id):
    quiz = owned_quiz(quiz_id)

    submissions = database.submissions_collection()
    averages = list(submissions.aggregate([
        {"$match": {"quiz": quiz["_id"]}},
        {"$group": {"_id": None, "avg": {"$avg": "$score"}, "count": {"$sum": 1}}},
    ]))
    summary = averages[0] if averages else {"avg": None, "count": 0}

    stats = {
        "totalQuestions": len(quiz.get("questions", [])),
        "isActive": quiz.get("isActive", False),
        "createdAt": quiz.get("createdAt"),
        "updatedAt": quiz.get("updatedAt"),
        "totalSubmissions": summary["count"],
        "averageScore": round(summary["avg"], 2) if summary["avg"] is not None else 0,
    }

    return jsonify({
        "success": True,
        "data": {
            "quiz": {
                "_id": str(quiz["_id"]),
                "title": quiz["title"],
                "description": quiz["description"],
            },
            "stats": to_json(stats),
        },
    }), 200
