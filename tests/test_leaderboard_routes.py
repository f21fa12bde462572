from datetime import datetime
from unittest.mock import MagicMock, patch

from bson import ObjectId
from conftest import make_user


def fake_submissions(*results):
    collection = MagicMock()
    collection.aggregate.side_effect = [iter(r) for r in results]
    return collection


def submit(db, quiz_id, user, score, day):
    db.submissions.insert_one({
        "quiz": quiz_id,
        "user": user["_id"],
        "score": score,
        "createdAt": datetime(2024, 5, day),
    })


class TestGlobalLeaderboard:

    def test_ranks_rows(self, admin_client):
        rows = [
            {"_id": ObjectId(), "username": "alice", "totalScore": 180, "averageScore": 90.0,
             "totalQuizzes": 2, "lastActivity": datetime(2024, 5, 1)},
            {"_id": ObjectId(), "username": "bob", "totalScore": 100, "averageScore": 33.3333,
             "totalQuizzes": 3, "lastActivity": datetime(2024, 5, 2)},
        ]
        collection = fake_submissions(rows)
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            response = admin_client.get("/api/admin/leaderboard/global?limit=5")

        assert response.status_code == 200
        body = response.get_json()
        assert body["totalUsers"] == 2
        assert [r["rank"] for r in body["leaderboard"]] == [1, 2]
        assert body["leaderboard"][1]["averageScore"] == 33.33
        pipeline = collection.aggregate.call_args[0][0]
        assert pipeline[-1] == {"$limit": 5}

    def test_limit_is_clamped(self, admin_client):
        collection = fake_submissions([])
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            admin_client.get("/api/admin/leaderboard/global?limit=100000")
        assert collection.aggregate.call_args[0][0][-1] == {"$limit": 100}

    def test_requires_admin(self, user_client):
        assert user_client.get("/api/admin/leaderboard/global").status_code == 403

    def test_totals_from_stored_submissions(self, admin_client, db):
        alice = make_user(db, "alice", "alice@example.com")
        bob = make_user(db, "bob", "bob@example.com")
        carol = make_user(db, "carol", "carol@example.com")
        first, second, third = ObjectId(), ObjectId(), ObjectId()
        submit(db, first, alice, 80, 1)
        submit(db, second, alice, 100, 3)
        submit(db, first, bob, 90, 2)
        submit(db, first, carol, 50, 1)
        submit(db, second, carol, 60, 2)
        submit(db, third, carol, 30, 4)

        body = admin_client.get("/api/admin/leaderboard/global").get_json()

        board = body["leaderboard"]
        assert [r["username"] for r in board] == ["alice", "carol", "bob"]
        assert [r["totalScore"] for r in board] == [180, 140, 90]
        assert [r["rank"] for r in board] == [1, 2, 3]
        assert board[1]["totalQuizzes"] == 3
        assert board[1]["averageScore"] == 46.67
        assert board[0]["email"] == "alice@example.com"

    def test_limit_applies_to_stored_submissions(self, admin_client, db):
        for index, score in enumerate([40, 70, 90]):
            user = make_user(db, f"user{index}", f"user{index}@example.com")
            submit(db, ObjectId(), user, score, 1)

        body = admin_client.get("/api/admin/leaderboard/global?limit=2").get_json()
        assert [r["totalScore"] for r in body["leaderboard"]] == [90, 70]


class TestQuizLeaderboard:

    def test_quiz_leaderboard(self, admin_client):
        quiz_id = ObjectId()
        rows = [{"_id": ObjectId(), "username": "alice", "bestScore": 100, "totalAttempts": 1}]
        collection = fake_submissions(rows)
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            response = admin_client.get(f"/api/admin/leaderboard/quiz/{quiz_id}")

        body = response.get_json()
        assert response.status_code == 200
        assert body["quizId"] == str(quiz_id)
        assert body["totalParticipants"] == 1
        assert body["leaderboard"][0]["rank"] == 1
        assert collection.aggregate.call_args[0][0][0] == {"$match": {"quiz": quiz_id}}

    def test_invalid_quiz_id(self, admin_client):
        response = admin_client.get("/api/admin/leaderboard/quiz/abc")
        assert response.status_code == 400
        assert response.get_json()["detail"] == "Invalid quiz ID format"

    def test_best_scores_from_stored_submissions(self, admin_client, db):
        quiz_id, other_quiz = ObjectId(), ObjectId()
        alice = make_user(db, "alice", "alice@example.com")
        bob = make_user(db, "bob", "bob@example.com")
        carol = make_user(db, "carol", "carol@example.com")
        submit(db, quiz_id, alice, 75, 1)
        submit(db, quiz_id, bob, 100, 3)
        submit(db, quiz_id, carol, 100, 2)
        submit(db, other_quiz, alice, 100, 1)

        body = admin_client.get(f"/api/admin/leaderboard/quiz/{quiz_id}").get_json()

        board = body["leaderboard"]
        assert body["totalParticipants"] == 3
        # equal scores: the earlier submission ranks first
        assert [r["username"] for r in board] == ["carol", "bob", "alice"]
        assert [r["bestScore"] for r in board] == [100, 100, 75]
        assert all(r["totalAttempts"] == 1 for r in board)


class TestUserStats:

    def test_own_stats(self, user_client, regular_user):
        stats = [{"_id": None, "totalSubmissions": 2, "totalScore": 150, "averageScore": 75.0,
                  "bestScore": 100, "worstScore": 50}]
        breakdown = [{"_id": ObjectId(), "quizTitle": "Capitals", "attempts": 1, "bestScore": 100,
                      "averageScore": 100.0, "lastAttempt": datetime(2024, 5, 1)}]
        rank = [{"_id": None, "rank": 3, "totalUsers": 7}]
        collection = fake_submissions(stats, breakdown, rank)

        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            response = user_client.get("/api/stats")

        assert response.status_code == 200
        body = response.get_json()
        assert body["stats"]["totalSubmissions"] == 2
        assert body["stats"]["averageScore"] == 75.0
        assert body["rank"] == 3
        assert body["quizBreakdown"][0]["quizTitle"] == "Capitals"
        match = collection.aggregate.call_args_list[0][0][0][0]
        assert match == {"$match": {"user": regular_user["_id"]}}

    def test_no_submissions(self, user_client):
        collection = fake_submissions([], [], [])
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            body = user_client.get("/api/stats").get_json()

        assert body["stats"] == {
            "totalSubmissions": 0,
            "totalScore": 0,
            "averageScore": 0,
            "bestScore": 0,
            "worstScore": 0,
        }
        assert body["rank"] is None
        assert body["quizBreakdown"] == []

    def test_unranked_user_gets_null_rank(self, user_client):
        collection = fake_submissions([], [], [{"_id": None, "rank": 0, "totalUsers": 4}])
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            body = user_client.get("/api/stats").get_json()
        assert body["rank"] is None

    def test_other_users_stats_forbidden_for_user(self, user_client, admin_user):
        response = user_client.get(f"/api/stats/{admin_user['_id']}")
        assert response.status_code == 403
        assert response.get_json()["detail"] == "Access denied"

    def test_admin_can_view_any_stats(self, admin_client, regular_user):
        collection = fake_submissions([], [], [])
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            response = admin_client.get(f"/api/stats/{regular_user['_id']}")
        assert response.status_code == 200

    def test_invalid_user_id(self, user_client):
        assert user_client.get("/api/stats/xyz").status_code == 400

    def test_my_rank(self, user_client):
        collection = fake_submissions([{"_id": None, "rank": 2, "totalUsers": 5}])
        with patch("quiz_backend.database.submissions_collection", return_value=collection):
            body = user_client.get("/api/my-rank").get_json()
        assert body == {"rank": 2, "totalUsers": 5}
