from flask_pymongo import PyMongo
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_cors import CORS

from quiz_backend.utils.otp_store import PendingSignupStore

mongo = PyMongo()
bcrypt = Bcrypt()
jwt = JWTManager()
cors = CORS()
pending_signups = PendingSignupStore()
