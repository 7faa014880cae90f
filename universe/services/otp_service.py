"""
Pending-signup staging and one-time code verification.

A signup is staged as a :class:`PendingSignup` row keyed by an opaque token
that the browser session carries. The row lives until the code is verified,
the code expires, too many wrong codes are submitted, or the session starts
a new signup. An :class:`Account` is only created from a verified row.
"""

import hmac
import logging
import random
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from sqlalchemy.orm import Session

from universe.config import settings
from universe.models.account import Account
from universe.models.pending_signup import PendingSignup
from universe.schemas.account import SignupForm
from universe.utils.clock import utcnow

logger = logging.getLogger(__name__)

_rng = random.SystemRandom()


class VerificationResult(str, Enum):
    verified = "verified"
    mismatch = "mismatch"
    expired = "expired"
    locked = "locked"
    missing = "missing"
    email_taken = "email_taken"


class ResendTooSoon(Exception):
    def __init__(self, retry_after: int):
        super().__init__(f"Please wait {retry_after} seconds before requesting a new code")
        self.retry_after = retry_after


def generate_code() -> str:
    return str(_rng.randint(1000, 9999))


def new_signup_token() -> str:
    return secrets.token_urlsafe(32)


def get_pending_signup(db: Session, token: str | None) -> PendingSignup | None:
    if not token:
        return None
    return db.query(PendingSignup).filter(PendingSignup.token == token).first()


def purge_expired(db: Session, now: datetime | None = None) -> int:
    now = now or utcnow()
    removed = (
        db.query(PendingSignup)
        .filter(PendingSignup.expires_at <= now)
        .delete(synchronize_session="fetch")
    )
    db.commit()
    if removed:
        logger.info("Purged %s expired pending signups", removed)
    return removed


def stage_signup(
    db: Session,
    form: SignupForm,
    token: str | None = None,
    now: datetime | None = None,
) -> PendingSignup:
    """Stage ``form`` under ``token``, replacing whatever that token held."""
    now = now or utcnow()
    purge_expired(db, now)

    if token:
        db.query(PendingSignup).filter(PendingSignup.token == token).delete(synchronize_session="fetch")

    pending = PendingSignup(
        token=new_signup_token(),
        name=form.name,
        email=form.email.lower(),
        phone=form.phone,
        dob=form.dob,
        pin=form.pin,
        code=generate_code(),
        expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
        attempts=0,
        last_sent_at=now,
    )
    db.add(pending)
    db.commit()
    db.refresh(pending)

    logger.info("Staged signup for %s (expires %s)", pending.email, pending.expires_at)
    return pending


def discard(db: Session, pending: PendingSignup) -> None:
    db.delete(pending)
    db.commit()


def secrets_match(expected, submitted) -> bool:
    """Constant-time comparison of two values as stripped UTF-8 strings."""
    return hmac.compare_digest(
        str(expected).strip().encode("utf-8"),
        str(submitted).strip().encode("utf-8"),
    )


def codes_match(expected: str, submitted) -> bool:
    return secrets_match(expected, submitted)


def verify_code(
    db: Session,
    token: str | None,
    code,
    now: datetime | None = None,
) -> tuple[VerificationResult, Account | None]:
    now = now or utcnow()
    pending = get_pending_signup(db, token)
    if not pending:
        return VerificationResult.missing, None

    if pending.is_expired(now):
        logger.info("Verification code for %s expired", pending.email)
        discard(db, pending)
        return VerificationResult.expired, None

    if not codes_match(pending.code, code):
        pending.attempts += 1
        if settings.OTP_MAX_ATTEMPTS and pending.attempts >= settings.OTP_MAX_ATTEMPTS:
            logger.warning("Too many wrong codes for %s, discarding signup", pending.email)
            discard(db, pending)
            return VerificationResult.locked, None
        db.commit()
        logger.info("Wrong verification code for %s (attempt %s)", pending.email, pending.attempts)
        return VerificationResult.mismatch, None

    if db.query(Account).filter(Account.email == pending.email).first():
        logger.info("Email %s was registered while verification was pending", pending.email)
        discard(db, pending)
        return VerificationResult.email_taken, None

    account = Account(
        name=pending.name,
        email=pending.email,
        phone=pending.phone,
        dob=pending.dob,
        pin=pending.pin,
        email_verified=True,
        profile_created=False,
    )
    db.add(account)
    db.delete(pending)
    db.commit()
    db.refresh(account)

    logger.info("Account %s created for %s", account.id, account.email)
    return VerificationResult.verified, account


def refresh_code(
    db: Session,
    pending: PendingSignup,
    send: Callable[[PendingSignup], None] | None = None,
    now: datetime | None = None,
) -> PendingSignup:
    """Issue a new code and expiry for ``pending`` in place.

    When ``send`` is given it is called with the refreshed row before the
    commit; if it raises, the previous code, expiry and cooldown stay in force.
    """
    now = now or utcnow()
    cooldown = settings.OTP_RESEND_COOLDOWN_SECONDS
    if cooldown and pending.last_sent_at:
        elapsed = (now - pending.last_sent_at).total_seconds()
        if elapsed < cooldown:
            raise ResendTooSoon(int(cooldown - elapsed) + 1)

    pending.code = generate_code()
    pending.expires_at = now + timedelta(minutes=settings.OTP_TTL_MINUTES)
    pending.attempts = 0
    pending.last_sent_at = now

    if send is not None:
        try:
            send(pending)
        except Exception:
            db.rollback()
            raise

    db.commit()
    db.refresh(pending)

    logger.info("Refreshed verification code for %s", pending.email)
    return pending
