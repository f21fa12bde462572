from flask import Blueprint, jsonify
from werkzeug.exceptions import Forbidden

from quiz_backend import database
from quiz_backend.dependencies import current_role, get_current_user, login_required
from quiz_backend.models import Capability
from quiz_backend.utils.aggregations import (
    quiz_breakdown_pipeline,
    user_rank_pipeline,
    user_stats_pipeline,
)
from quiz_backend.utils.serializers import parse_object_id, to_json

router = Blueprint("stats", __name__, url_prefix="/api")

EMPTY_STATS = {
    "totalSubmissions": 0,
    "totalScore": 0,
    "averageScore": 0,
    "bestScore": 0,
    "worstScore": 0,
}


def rank_of(user_id):
    rows = list(database.submissions_collection().aggregate(user_rank_pipeline(user_id)))
    if not rows:
        return None, 0
    # $indexOfArray gives -1 for a user without submissions, so rank 0 means unranked
    return rows[0].get("rank") or None, rows[0].get("totalUsers", 0)


@router.route("/stats", methods=["GET"])
@router.route("/stats/<user_id>", methods=["GET"])
@login_required
def get_user_stats(user_id=None):
    user = get_current_user()
    if user_id is None:
        target = user["_id"]
    else:
        target = parse_object_id(user_id, "user ID")
        if target != user["_id"] and not current_role().can(Capability.VIEW_ANY_STATS):
            raise Forbidden("Access denied")

    submissions = database.submissions_collection()
    stats_rows = list(submissions.aggregate(user_stats_pipeline(target)))
    stats = dict(EMPTY_STATS)
    if stats_rows:
        stats.update({k: v for k, v in stats_rows[0].items() if k != "_id"})
        stats["averageScore"] = round(stats["averageScore"] or 0, 2)

    breakdown = list(submissions.aggregate(quiz_breakdown_pipeline(target)))
    for row in breakdown:
        row["averageScore"] = round(row.get("averageScore") or 0, 2)

    rank, _ = rank_of(target)
    return jsonify({"stats": stats, "rank": rank, "quizBreakdown": to_json(breakdown)}), 200


@router.route("/my-rank", methods=["GET"])
@login_required
def get_my_rank():
    rank, total_users = rank_of(get_current_user()["_id"])
    return jsonify({"rank": rank, "totalUsers": total_users}), 200
