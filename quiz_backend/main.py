import logging
import os

from flask import Flask, jsonify

from quiz_backend.config import Config, TestingConfig
from quiz_backend.database import ensure_indexes
from quiz_backend.dependencies import register_jwt_handlers
from quiz_backend.errors import register_error_handlers
from quiz_backend.extensions import bcrypt, cors, jwt, mongo, pending_signups
from quiz_backend.routes.admin.leaderboard import router as leaderboard_router
from quiz_backend.routes.admin.questions import router as questions_router
from quiz_backend.routes.admin.quizzes import router as admin_quizzes_router
from quiz_backend.routes.admin.users import router as admin_users_router
from quiz_backend.routes.auth.auth import router as auth_router
from quiz_backend.routes.profile.profile import router as profile_router
from quiz_backend.routes.quiz.stats import router as stats_router
from quiz_backend.routes.quiz.taking import router as quiz_taking_router

logger = logging.getLogger(__name__)


def create_app(config_object=Config, overrides=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    mongo.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    pending_signups.init_app(app)

    register_jwt_handlers(jwt)
    register_error_handlers(app)

    # Register blueprints from all routes
    app.register_blueprint(auth_router)
    app.register_blueprint(profile_router)
    app.register_blueprint(admin_quizzes_router)
    app.register_blueprint(questions_router)
    app.register_blueprint(admin_users_router)
    app.register_blueprint(leaderboard_router)
    app.register_blueprint(quiz_taking_router)
    app.register_blueprint(stats_router)

    @app.route("/", methods=["GET"])
    def root():
        return jsonify({"msg": "Backend is running"})

    if app.config.get("MONGO_ENSURE_INDEXES"):
        ensure_indexes(mongo.db)

    return app


def create_testing_app(overrides=None):
    return create_app(TestingConfig, overrides)


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)))
