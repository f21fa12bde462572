from flask import Blueprint, jsonify

from quiz_backend import database
from quiz_backend.dependencies import capability_required
from quiz_backend.models import Capability
from quiz_backend.utils.aggregations import (
    global_leaderboard_pipeline,
    quiz_leaderboard_pipeline,
    with_rank,
)
from quiz_backend.utils.pagination import int_arg
from quiz_backend.utils.serializers import parse_object_id, to_json

router = Blueprint("admin_leaderboard", __name__, url_prefix="/api/admin/leaderboard")


@router.route("/global", methods=["GET"])
@capability_required(Capability.VIEW_LEADERBOARDS)
def global_leaderboard():
    limit = int_arg("limit", 10)
    rows = list(database.submissions_collection().aggregate(global_leaderboard_pipeline(limit)))
    leaderboard = with_rank(rows, average_field="averageScore")

    return jsonify({"leaderboard": to_json(leaderboard), "totalUsers": len(leaderboard)}), 200


@router.route("/quiz/<quiz_id>", methods=["GET"])
@capability_required(Capability.VIEW_LEADERBOARDS)
def quiz_leaderboard(quiz_id):
    quiz_object_id = parse_object_id(quiz_id, "quiz ID")
    limit = int_arg("limit", 10)
    rows = list(
        database.submissions_collection().aggregate(quiz_leaderboard_pipeline(quiz_object_id, limit))
    )
    leaderboard = with_rank(rows)

    return jsonify({
        "leaderboard": to_json(leaderboard),
        "quizId": quiz_id,
        "totalParticipants": len(leaderboard),
    }), 200
