"""Pending signups waiting for email verification.

Entries live in a bounded TTL cache, so abandoned signups expire on their own
and the store never grows past ``OTP_MAX_PENDING`` entries.
"""
import secrets
import threading
from dataclasses import dataclass

from cachetools import TTLCache

DEFAULT_TTL_SECONDS = 600
DEFAULT_MAX_PENDING = 10000


class OtpError(Exception):
    pass


class OtpExpiredError(OtpError):
    pass


class OtpMismatchError(OtpError):
    pass


@dataclass(frozen=True)
class PendingSignup:
    username: str
    email: str
    password_hash: str
    otp: str


def generate_otp():
    return str(100000 + secrets.randbelow(900000))


class PendingSignupStore:
    def __init__(self, ttl=DEFAULT_TTL_SECONDS, maxsize=DEFAULT_MAX_PENDING, timer=None):
        self._lock = threading.Lock()
        self._configure(ttl, maxsize, timer)

    def _configure(self, ttl, maxsize, timer=None):
        if timer is None:
            self._cache = TTLCache(maxsize=maxsize, ttl=ttl)
        else:
            self._cache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def init_app(self, app):
        with self._lock:
            self._configure(
                app.config.get("OTP_TTL_SECONDS", DEFAULT_TTL_SECONDS),
                app.config.get("OTP_MAX_PENDING", DEFAULT_MAX_PENDING),
            )

    def add(self, username, email, password_hash):
        """Store a signup and return the OTP that unlocks it.

        A new signup for the same email replaces the previous one.
        """
        otp = generate_otp()
        with self._lock:
            self._cache[email] = PendingSignup(
                username=username, email=email, password_hash=password_hash, otp=otp
            )
        return otp

    def verify(self, email, otp):
        with self._lock:
            pending = self._cache.get(email)
            if pending is None:
                raise OtpExpiredError(email)
            if not secrets.compare_digest(pending.otp, str(otp)):
                raise OtpMismatchError(email)
            del self._cache[email]
        return pending

    def discard(self, email):
        with self._lock:
            self._cache.pop(email, None)

    def __contains__(self, email):
        with self._lock:
            return email in self._cache

    def __len__(self):
        with self._lock:
            return len(self._cache)
