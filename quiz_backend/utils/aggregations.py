"""Aggregation pipelines over the submissions collection."""


def _join_user():
    return [
        {
            "$lookup": {
                "from": "users",
                "localField": "_id",
                "foreignField": "_id",
                "as": "user",
            }
        },
        {"$unwind": "$user"},
    ]


def global_leaderboard_pipeline(limit):
    return [
        {
            "$group": {
                "_id": "$user",
                "totalScore": {"$sum": "$score"},
                "totalQuizzes": {"$sum": 1},
                "averageScore": {"$avg": "$score"},
                "lastActivity": {"$max": "$createdAt"},
            }
        },
        *_join_user(),
        {
            "$project": {
                "username": "$user.username",
                "email": "$user.email",
                "totalScore": 1,
                "totalQuizzes": 1,
                "averageScore": 1,
                "lastActivity": 1,
            }
        },
        {"$sort": {"totalScore": -1, "_id": 1}},
        {"$limit": limit},
    ]


def quiz_leaderboard_pipeline(quiz_id, limit):
    return [
        {"$match": {"quiz": quiz_id}},
        # Best score first, earliest submission wins ties
        {"$sort": {"score": -1, "createdAt": 1}},
        {
            "$group": {
                "_id": "$user",
                "bestScore": {"$first": "$score"},
                "bestScoreDate": {"$first": "$createdAt"},
                "totalAttempts": {"$sum": 1},
            }
        },
        *_join_user(),
        {
            "$project": {
                "username": "$user.username",
                "bestScore": 1,
                "bestScoreDate": 1,
                "totalAttempts": 1,
            }
        },
        {"$sort": {"bestScore": -1, "bestScoreDate": 1}},
        {"$limit": limit},
    ]


def user_stats_pipeline(user_id):
    return [
        {"$match": {"user": user_id}},
        {
            "$group": {
                "_id": None,
                "totalSubmissions": {"$sum": 1},
                "totalScore": {"$sum": "$score"},
                "averageScore": {"$avg": "$score"},
                "bestScore": {"$max": "$score"},
                "worstScore": {"$min": "$score"},
            }
        },
    ]


def user_rank_pipeline(user_id):
    """Rank is the 1-based index of the user in totals sorted descending, 0 if absent."""
    return [
        {"$group": {"_id": "$user", "totalScore": {"$sum": "$score"}}},
        {"$sort": {"totalScore": -1, "_id": 1}},
        {
            "$group": {
                "_id": None,
                "users": {"$push": {"user": "$_id", "totalScore": "$totalScore"}},
            }
        },
        {
            "$project": {
                "rank": {"$add": [{"$indexOfArray": ["$users.user", user_id]}, 1]},
                "totalUsers": {"$size": "$users"},
            }
        },
    ]


def quiz_breakdown_pipeline(user_id):
    return [
        {"$match": {"user": user_id}},
        {
            "$lookup": {
                "from": "quizzes",
                "localField": "quiz",
                "foreignField": "_id",
                "as": "quizInfo",
            }
        },
        {"$unwind": "$quizInfo"},
        {
            "$group": {
                "_id": "$quiz",
                "quizTitle": {"$first": "$quizInfo.title"},
                "attempts": {"$sum": 1},
                "bestScore": {"$max": "$score"},
                "averageScore": {"$avg": "$score"},
                "lastAttempt": {"$max": "$createdAt"},
            }
        },
        {"$sort": {"lastAttempt": -1}},
    ]


def daily_registrations_pipeline(since):
    return [
        {"$match": {"createdAt": {"$gte": since}}},
        {
            "$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
                "count": {"$sum": 1},
            }
        },
        {"$sort": {"_id": 1}},
    ]


def daily_submissions_pipeline(since):
    return [
        {"$match": {"createdAt": {"$gte": since}}},
        {
            "$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
                "submissions": {"$sum": 1},
                "averageScore": {"$avg": "$score"},
            }
        },
        {"$sort": {"_id": 1}},
    ]


def active_users_pipeline(limit=10):
    return [
        {
            "$group": {
                "_id": "$user",
                "submissionCount": {"$sum": 1},
                "totalScore": {"$sum": "$score"},
                "lastActivity": {"$max": "$createdAt"},
            }
        },
        *_join_user(),
        {
            "$project": {
                "username": "$user.username",
                "email": "$user.email",
                "submissionCount": 1,
                "totalScore": 1,
                "lastActivity": 1,
            }
        },
        {"$sort": {"submissionCount": -1}},
        {"$limit": limit},
    ]


# Upper bound 101 so a perfect score lands in the 80-100 bucket
SCORE_BOUNDARIES = [0, 20, 40, 60, 80, 101]


def score_distribution_pipeline():
    return [
        {
            "$bucket": {
                "groupBy": "$score",
                "boundaries": SCORE_BOUNDARIES,
                "default": "other",
                "output": {"count": {"$sum": 1}},
            }
        }
    ]


def average_score_pipeline():
    return [{"$group": {"_id": None, "avg": {"$avg": "$score"}}}]


def with_rank(rows, average_field=None):
    ranked = []
    for index, row in enumerate(rows):
        row = dict(row)
        if average_field and row.get(average_field) is not None:
            row[average_field] = round(row[average_field], 2)
        row["rank"] = index + 1
        ranked.append(row)
    return ranked
