from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, StrictBool, field_validator, model_validator


class Capability(str, Enum):
    TAKE_QUIZZES = "take_quizzes"
    MANAGE_QUIZZES = "manage_quizzes"
    MANAGE_USERS = "manage_users"
    VIEW_LEADERBOARDS = "view_leaderboards"
    VIEW_ANY_STATS = "view_any_stats"


class Role(str, Enum):
    USER = "User"
    ADMIN = "Admin"
    MODERATOR = "Moderator"

    @property
    def capabilities(self):
        return ROLE_CAPABILITIES[self]

    def can(self, capability):
        return capability in ROLE_CAPABILITIES[self]

    @classmethod
    def parse(cls, value):
        """Role stored on a user document; unknown values get the least privilege."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER


ROLE_CAPABILITIES = {
    Role.USER: frozenset({Capability.TAKE_QUIZZES}),
    Role.MODERATOR: frozenset({Capability.TAKE_QUIZZES}),
    Role.ADMIN: frozenset(Capability),
}


def _stripped(value):
    if isinstance(value, str):
        value = value.strip()
    return value


def _not_blank(value):
    if not value:
        raise ValueError("must not be empty")
    return value


StrippedStr = Annotated[str, BeforeValidator(_stripped)]


class SignupRequest(BaseModel):
    username: StrippedStr
    email: StrippedStr
    password: str

    @field_validator("username", "email", "password")
    @classmethod
    def not_blank(cls, value):
        return _not_blank(value)


class VerifyOtpRequest(BaseModel):
    email: StrippedStr
    otp: StrippedStr


class LoginRequest(BaseModel):
    email: StrippedStr
    password: str


class ProfileUpdate(BaseModel):
    username: Optional[StrippedStr] = None
    email: Optional[StrippedStr] = None
    password: Optional[str] = None


class QuizPayload(BaseModel):
    title: StrippedStr
    description: StrippedStr

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, value):
        return _not_blank(value)


class QuizStatusPayload(BaseModel):
    isActive: StrictBool


class QuestionPayload(BaseModel):
    questionText: StrippedStr
    options: List[StrippedStr]
    correctAnswer: StrippedStr

    @model_validator(mode="after")
    def check_answer(self):
        if not self.questionText:
            raise ValueError("questionText must not be empty")
        if len(self.options) < 2:
            raise ValueError("options must contain at least 2 items")
        if self.correctAnswer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class AnswerItem(BaseModel):
    questionId: str
    selectedAnswer: Optional[str] = None


class SubmissionPayload(BaseModel):
    answers: List[AnswerItem]
