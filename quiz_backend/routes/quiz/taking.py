import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from quiz_backend import database
from quiz_backend.dependencies import get_current_user, login_required
from quiz_backend.errors import abort_with
from quiz_backend.models import SubmissionPayload
from quiz_backend.routes.admin.quizzes import ordered_questions
from quiz_backend.utils.scoring import percentage, score_answers
from quiz_backend.utils.serializers import json_body, parse_object_id, to_json

logger = logging.getLogger(__name__)

router = Blueprint("quiz_taking", __name__, url_prefix="/api")

PUBLIC_QUESTION_FIELDS = {"questionText": 1, "options": 1}


def active_quiz(quiz_id):
    quiz = database.quizzes_collection().find_one({"_id": parse_object_id(quiz_id, "quiz ID")})
    if not quiz or not quiz.get("isActive"):
        raise NotFound("Quiz not found or inactive")
    return quiz


@router.route("/quizzes", methods=["GET"])
@login_required
def get_active_quizzes():
    user = get_current_user()
    quizzes = list(
        database.quizzes_collection()
        .find({"isActive": True}, {"title": 1, "description": 1, "createdAt": 1, "createdBy": 1})
        .sort("createdAt", DESCENDING)
    )

    creator_ids = list({q["createdBy"] for q in quizzes if q.get("createdBy")})
    creators = {
        u["_id"]: u.get("username")
        for u in database.users_collection().find({"_id": {"$in": creator_ids}}, {"username": 1})
    }
    submitted = {
        s["quiz"]
        for s in database.submissions_collection().find({"user": user["_id"]}, {"quiz": 1})
    }

    for quiz in quizzes:
        creator_id = quiz.get("createdBy")
        quiz["createdBy"] = {"_id": creator_id, "username": creators.get(creator_id)}
        quiz["hasSubmitted"] = quiz["_id"] in submitted

    return jsonify({"success": True, "count": len(quizzes), "quizzes": to_json(quizzes)}), 200


@router.route("/quiz/<quiz_id>/start", methods=["GET"])
@login_required
def start_quiz(quiz_id):
    quiz = active_quiz(quiz_id)
    # Correct answers never leave the server here
    questions = ordered_questions(quiz, PUBLIC_QUESTION_FIELDS)

    return jsonify({
        "success": True,
        "quiz": to_json({
            "_id": quiz["_id"],
            "title": quiz["title"],
            "description": quiz["description"],
            "totalQuestions": len(questions),
            "questions": questions,
        }),
    }), 200


@router.route("/quiz/<quiz_id>/submit", methods=["POST"])
@login_required
def submit_quiz(quiz_id):
    user = get_current_user()
    payload = SubmissionPayload(**json_body())
    quiz = active_quiz(quiz_id)

    questions = ordered_questions(quiz)
    if not questions:
        raise BadRequest("Quiz has no questions")

    correct, stored_answers, details = score_answers(
        questions, [(a.questionId, a.selectedAnswer) for a in payload.answers]
    )
    score = percentage(correct, len(questions))

    now = datetime.now(timezone.utc)
    submission = {
        "quiz": quiz["_id"],
        "user": user["_id"],
        "answers": stored_answers,
        "score": score,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        submission_id = database.submissions_collection().insert_one(submission).inserted_id
    except DuplicateKeyError:
        previous = database.submissions_collection().find_one(
            {"quiz": quiz["_id"], "user": user["_id"]}, {"score": 1}
        )
        logger.warning(f"Duplicate submission attempt by {user['_id']} on quiz {quiz['_id']}")
        abort_with(
            Conflict,
            "You have already submitted this quiz",
            previousScore=previous["score"] if previous else None,
        )

    logger.info(f"User {user['_id']} scored {score}% on quiz {quiz['_id']}")
    return jsonify({
        "success": True,
        "message": "Quiz submitted successfully",
        "results": to_json({
            "score": score,
            "correctAnswers": correct,
            "totalQuestions": len(questions),
            "percentage": score,
            "submissionId": submission_id,
            "detailedResults": details,
        }),
    }), 200


@router.route("/my-submissions", methods=["GET"])
@login_required
def get_my_submissions():
    user = get_current_user()
    submissions = list(
        database.submissions_collection()
        .find({"user": user["_id"]}, {"quiz": 1, "score": 1, "createdAt": 1})
        .sort("createdAt", DESCENDING)
    )

    quiz_ids = list({s["quiz"] for s in submissions})
    quizzes = {
        q["_id"]: q
        for q in database.quizzes_collection().find(
            {"_id": {"$in": quiz_ids}}, {"title": 1, "description": 1}
        )
    }
    for submission in submissions:
        submission["quiz"] = quizzes.get(submission["quiz"], {"_id": submission["quiz"]})

    return jsonify({
        "success": True,
        "count": len(submissions),
        "submissions": to_json(submissions),
    }), 200


@router.route("/submission/<submission_id>", methods=["GET"])
@login_required
def get_submission_details(submission_id):
    user = get_current_user()
    submission = database.submissions_collection().find_one({
        "_id": parse_object_id(submission_id, "submission ID"),
        "user": user["_id"],
    })
    if not submission:
        raise NotFound("Submission not found")

    quiz = database.quizzes_collection().find_one(
        {"_id": submission["quiz"]}, {"title": 1, "description": 1}
    )
    question_ids = [a["questionId"] for a in submission.get("answers", [])]
    questions = {
        q["_id"]: q
        for q in database.questions_collection().find({"_id": {"$in": question_ids}})
    }

    details = []
    for answer in submission.get("answers", []):
        question = questions.get(answer["questionId"])
        if not question:
            continue
        details.append({
            "questionText": question["questionText"],
            "options": question["options"],
            "userAnswer": answer.get("selectedAnswer"),
            "correctAnswer": question["correctAnswer"],
            "isCorrect": answer.get("selectedAnswer") == question["correctAnswer"],
        })

    return jsonify({
        "success": True,
        "submission": to_json({
            "_id": submission["_id"],
            "quiz": quiz or {"_id": submission["quiz"]},
            "score": submission["score"],
            "submittedAt": submission.get("createdAt"),
            "totalQuestions": len(details),
            "correctAnswers": sum(1 for d in details if d["isCorrect"]),
            "detailedResults": details,
        }),
    }), 200
