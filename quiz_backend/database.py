import logging

from pymongo import ASCENDING

from quiz_backend.extensions import mongo

logger = logging.getLogger(__name__)


def users_collection():
    return mongo.db["users"]


def quizzes_collection():
    return mongo.db["quizzes"]


def questions_collection():
    return mongo.db["questions"]


def submissions_collection():
    return mongo.db["submissions"]


def ensure_indexes(db):
    db["users"].create_index([("email", ASCENDING)], unique=True)
    db["users"].create_index([("username", ASCENDING)], unique=True)
    db["quizzes"].create_index([("createdBy", ASCENDING)])
    db["questions"].create_index([("quiz", ASCENDING)])
    # One submission per (quiz, user)
    db["submissions"].create_index(
        [("quiz", ASCENDING), ("user", ASCENDING)], unique=True, name="quiz_user_unique"
    )
    logger.info("MongoDB indexes ensured.")
