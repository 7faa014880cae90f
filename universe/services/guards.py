"""
Route guards.

Each guard is a FastAPI dependency that either lets the request through or
raises :class:`GuardRedirect`, which the application turns into a redirect.
Routes declare the guards they need; dependencies resolve in declaration
order, and the profile guards chain onto :func:`require_auth` so they always
run after it.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from universe.database import get_db
from universe.models.account import Account

logger = logging.getLogger(__name__)

SESSION_ACCOUNT_KEY = "account_id"
SESSION_SIGNUP_KEY = "signup_token"

SIGN_IN_URL = "/sign_in"
DASHBOARD_URL = "/dashboard"
PROFILE_CREATE_URL = "/Profile_create"


class GuardRedirect(Exception):
    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def require_auth(request: Request) -> int:
    account_id = request.session.get(SESSION_ACCOUNT_KEY)
    if account_id is None:
        raise GuardRedirect(SIGN_IN_URL)
    return account_id


def require_guest(request: Request) -> None:
    if request.session.get(SESSION_ACCOUNT_KEY) is not None:
        raise GuardRedirect(DASHBOARD_URL)


def _load_session_account(request: Request, account_id: int, db: Session) -> Account:
    account = db.get(Account, account_id)
    if not account:
        logger.info("Session bound to missing account %s, signing out", account_id)
        request.session.pop(SESSION_ACCOUNT_KEY, None)
        raise GuardRedirect(SIGN_IN_URL)
    return account


def require_profile(
    request: Request,
    account_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
) -> Account:
    account = _load_session_account(request, account_id, db)
    if not account.profile_created:
        raise GuardRedirect(PROFILE_CREATE_URL)
    return account


def require_no_profile(
    request: Request,
    account_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
) -> Account:
    account = _load_session_account(request, account_id, db)
    if account.profile_created:
        raise GuardRedirect(DASHBOARD_URL)
    return account
