import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from pydantic import ValidationError
from pymongo import ASCENDING
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from quiz_backend import database
from quiz_backend.dependencies import capability_required, get_current_user
from quiz_backend.errors import abort_with
from quiz_backend.models import Capability, QuestionPayload
from quiz_backend.routes.admin.quizzes import owned_quiz
from quiz_backend.utils.serializers import json_body, parse_object_id, to_json

logger = logging.getLogger(__name__)

router = Blueprint("admin_questions", __name__, url_prefix="/api/admin")

INVALID_QUESTION = (
    "Invalid data. Ensure questionText, options (array with >= 2 items), "
    "and a valid correctAnswer are provided."
)


def question_for_owner(question_id, action):
    """Question ``question_id`` and its quiz; 404 if missing, 403 if the quiz is not ours."""
    question = database.questions_collection().find_one(
        {"_id": parse_object_id(question_id, "question ID")}
    )
    if not question:
        raise NotFound("Question not found")

    quiz = database.quizzes_collection().find_one({"_id": question.get("quiz")})
    if not quiz or quiz["createdBy"] != get_current_user()["_id"]:
        raise Forbidden(f"Access denied to {action} this question")
    return question, quiz


@router.route("/quiz/<quiz_id>/questions", methods=["POST"])
@capability_required(Capability.MANAGE_QUIZZES)
def add_questions(quiz_id):
    data = json_body()
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise BadRequest("Questions array is required and must not be empty")

    quiz = owned_quiz(quiz_id)

    created = []
    errors = []
    for index, item in enumerate(questions, start=1):
        try:
            payload = QuestionPayload.model_validate(item)
        except ValidationError:
            errors.append(f"Question {index}: {INVALID_QUESTION}")
            continue

        question = {
            "questionText": payload.questionText,
            "options": payload.options,
            "correctAnswer": payload.correctAnswer,
            "quiz": quiz["_id"],
        }
        question["_id"] = database.questions_collection().insert_one(question).inserted_id
        created.append(question)

    if not created:
        abort_with(
            BadRequest,
            "No questions were created due to validation errors.",
            success=False,
            details=errors,
        )

    database.quizzes_collection().update_one(
        {"_id": quiz["_id"]},
        {
            "$push": {"questions": {"$each": [q["_id"] for q in created]}},
            "$set": {"updatedAt": datetime.now(timezone.utc)},
        },
    )
    logger.info(f"Added {len(created)} question(s) to quiz {quiz['_id']}")

    response = {
        "success": True,
        "message": f"{len(created)} of {len(questions)} question(s) added successfully.",
        "data": {"questions": to_json(created)},
    }
    if errors:
        response["warnings"] = errors
    return jsonify(response), 201


@router.route("/quiz/<quiz_id>/questions", methods=["GET"])
@capability_required(Capability.MANAGE_QUIZZES)
def get_questions(quiz_id):
    quiz = owned_quiz(quiz_id)
    questions = list(
        database.questions_collection().find({"quiz": quiz["_id"]}).sort("_id", ASCENDING)
    )
    return jsonify({
        "success": True,
        "data": {"questions": to_json(questions), "total": len(questions)},
    }), 200


@router.route("/question/<question_id>", methods=["PUT"])
@capability_required(Capability.MANAGE_QUIZZES)
def update_question(question_id):
    try:
        payload = QuestionPayload.model_validate(json_body())
    except ValidationError:
        raise BadRequest(INVALID_QUESTION)

    question, quiz = question_for_owner(question_id, "update")
    changes = {
        "questionText": payload.questionText,
        "options": payload.options,
        "correctAnswer": payload.correctAnswer,
    }
    database.questions_collection().update_one({"_id": question["_id"]}, {"$set": changes})
    database.quizzes_collection().update_one(
        {"_id": quiz["_id"]}, {"$set": {"updatedAt": datetime.now(timezone.utc)}}
    )
    question.update(changes)

    return jsonify({
        "success": True,
        "message": "Question updated successfully",
        "data": {"question": to_json(question)},
    }), 200


@router.route("/question/<question_id>", methods=["DELETE"])
@capability_required(Capability.MANAGE_QUIZZES)
def delete_question(question_id):
    question, quiz = question_for_owner(question_id, "delete")

    remaining = [qid for qid in quiz.get("questions", []) if qid != question["_id"]]
    changes = {"updatedAt": datetime.now(timezone.utc)}
    if not remaining and quiz.get("isActive"):
        # An active quiz must keep at least one question
        changes["isActive"] = False
        logger.info(f"Quiz {quiz['_id']} deactivated after its last question was deleted")

    database.quizzes_collection().update_one(
        {"_id": quiz["_id"]},
        {"$pull": {"questions": question["_id"]}, "$set": changes},
    )
    database.questions_collection().delete_one({"_id": question["_id"]})

    return jsonify({"success": True, "message": "Question deleted successfully"}), 200
