from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from instabill.domain.errors import AuthorizationError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginPolicy:
    min_pin_length: int = 4
    max_failed_attempts: int = 5
    lockout_seconds: int = 60


def hash_pin(pin: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
    return f"pbkdf2_sha256${rounds}${salt}${digest}"


def verify_pin(stored: str, provided: str) -> bool:
    if not stored.startswith("pbkdf2_sha256$"):
        return False
    try:
        _algo, rounds_s, salt, digest = stored.split("$", 3)
        candidate = hashlib.pbkdf2_hmac(
            "sha256",
            provided.encode("utf-8"),
            bytes.fromhex(salt),
            int(rounds_s),
        ).hex()
    except ValueError:
        return False
    return hmac.compare_digest(candidate, digest)


class AdminAuthService:
    """PIN gate for the admin area, with lockout after repeated failures."""

    def __init__(
        self,
        repo,
        default_pin: str = "1234",
        policy: LoginPolicy | None = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.repo = repo
        self.policy = policy or LoginPolicy()
        self.now = now
        if self.repo.load_admin_pin_hash() is None:
            self.repo.save_admin_pin_hash(hash_pin(default_pin))

    def login(self, pin: str) -> None:
        attempts, locked_until = self.repo.load_admin_guard()
        if locked_until:
            until = datetime.fromisoformat(locked_until)
            if self.now() < until:
                remaining = int((until - self.now()).total_seconds())
                raise AuthorizationError(f"Admin is temporarily locked. Retry in {remaining}s.")
            attempts = 0

        stored = self.repo.load_admin_pin_hash() or ""
        if not verify_pin(stored, (pin or "").strip()):
            attempts += 1
            if attempts >= self.policy.max_failed_attempts:
                until = self.now() + timedelta(seconds=self.policy.lockout_seconds)
                self.repo.save_admin_guard(0, until.isoformat())
                log.warning("admin_locked until=%s", until.isoformat())
                raise AuthorizationError("Too many failed attempts. Admin is temporarily locked.")
            self.repo.save_admin_guard(attempts, None)
            raise AuthorizationError("Invalid PIN.")

        self.repo.save_admin_guard(0, None)
        log.info("admin_login_ok")

    def change_pin(self, current_pin: str, new_pin: str, confirm_pin: str) -> None:
        new_secret = (new_pin or "").strip()
        if not verify_pin(self.repo.load_admin_pin_hash() or "", (current_pin or "").strip()):
            raise AuthorizationError("Current PIN is incorrect.")
        if len(new_secret) < self.policy.min_pin_length or not new_secret.isdigit():
            raise AuthorizationError(f"PIN must have at least {self.policy.min_pin_length} digits.")
        if new_secret != (confirm_pin or "").strip():
            raise AuthorizationError("PIN confirmation does not match.")
        self.repo.save_admin_pin_hash(hash_pin(new_secret))
        log.info("admin_pin_changed")
