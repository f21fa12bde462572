import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from flask_jwt_extended import set_access_cookies, unset_jwt_cookies
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, InternalServerError, Unauthorized

from quiz_backend import database
from quiz_backend.dependencies import issue_token
from quiz_backend.extensions import bcrypt, pending_signups
from quiz_backend.models import LoginRequest, Role, SignupRequest, VerifyOtpRequest
from quiz_backend.utils import mailer
from quiz_backend.utils.otp_store import OtpExpiredError, OtpMismatchError
from quiz_backend.utils.serializers import json_body, public_user

logger = logging.getLogger(__name__)

router = Blueprint("auth", __name__, url_prefix="/api/auth")


def hash_password(password):
    return bcrypt.generate_password_hash(password).decode("utf-8")


@router.route("/signup", methods=["POST"])
def signup():
    data = json_body()
    if not all(data.get(field) for field in ("username", "email", "password")):
        raise BadRequest("Please enter all fields.")
    payload = SignupRequest(**data)

    users = database.users_collection()
    if users.find_one({"email": payload.email}):
        raise BadRequest("A user with this email already exists.")
    if users.find_one({"username": payload.username}):
        raise BadRequest("This username is already taken.")

    otp = pending_signups.add(payload.username, payload.email, hash_password(payload.password))

    try:
        mailer.send_otp_email(payload.email, otp)
    except mailer.MailDeliveryError:
        pending_signups.discard(payload.email)
        raise InternalServerError(
            "Failed to send OTP email. Please ensure server email credentials are correct."
        )

    logger.info(f"Signup pending verification for {payload.email}")
    return jsonify({
        "message": f"OTP has been sent to {payload.email}. Please verify to complete your registration."
    }), 200


@router.route("/verify-otp", methods=["POST"])
def verify_otp():
    data = json_body()
    if not data.get("email") or not data.get("otp"):
        raise BadRequest("Please provide both email and OTP.")
    payload = VerifyOtpRequest(email=data["email"], otp=str(data["otp"]))

    try:
        pending = pending_signups.verify(payload.email, payload.otp)
    except OtpExpiredError:
        raise BadRequest("OTP is invalid or has expired. Please sign up again.")
    except OtpMismatchError:
        raise BadRequest("The OTP you entered is incorrect.")

    now = datetime.now(timezone.utc)
    try:
        database.users_collection().insert_one({
            "username": pending.username,
            "email": pending.email,
            "password": pending.password_hash,
            "role": Role.USER.value,
            "createdAt": now,
            "updatedAt": now,
        })
    except DuplicateKeyError:
        raise BadRequest("A user with this email or username already exists.")

    logger.info(f"Account created for {pending.email}")
    return jsonify({"message": "Account verified and created successfully! You can now log in."}), 201


@router.route("/login", methods=["POST"])
def login():
    data = json_body()
    if not data.get("email") or not data.get("password"):
        raise BadRequest("Email and password required")
    payload = LoginRequest(**data)

    user = database.users_collection().find_one({"email": payload.email})
    if not user or not bcrypt.check_password_hash(user["password"], payload.password):
        logger.info(f"Failed login for {payload.email}")
        raise Unauthorized("Invalid email or password.")

    response = jsonify({"message": "Logged in successfully!", "user": public_user(user)})
    set_access_cookies(response, issue_token(user))
    return response, 200


@router.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"message": "Logged out successfully."})
    unset_jwt_cookies(response)
    return response, 200
