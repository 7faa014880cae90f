import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from universe.database import get_db
from universe.models.account import Account
from universe.services import email_services, otp_service
from universe.services.guards import (
    DASHBOARD_URL,
    PROFILE_CREATE_URL,
    SESSION_ACCOUNT_KEY,
    SIGN_IN_URL,
    require_auth,
    require_guest,
)
from universe.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

INVALID_CREDENTIALS = "Invalid email or PIN"
NOT_VERIFIED = "Please verify your email before signing in"


def _render_sign_in(request: Request, error: str | None = None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(request, "sign_in.html", {"error": error}, status_code=status_code)


def _render_recover(
    request: Request,
    error: str | None = None,
    success: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    return templates.TemplateResponse(
        request,
        "recover_pin.html",
        {"error": error, "success": success},
        status_code=status_code,
    )


@router.get("/sign_in", dependencies=[Depends(require_guest)])
def sign_in_page(request: Request):
    return _render_sign_in(request)


@router.post("/sign_in", dependencies=[Depends(require_guest)])
def sign_in(
    request: Request,
    email: str = Form(""),
    pin: str = Form(""),
    db: Session = Depends(get_db),
):
    account = db.query(Account).filter(Account.email == email.strip().lower()).first()

    # same message for unknown email and wrong PIN
    if not account or not otp_service.secrets_match(account.pin, pin):
        logger.info("Failed sign-in for %s", email)
        return _render_sign_in(request, INVALID_CREDENTIALS, status.HTTP_400_BAD_REQUEST)

    if not account.email_verified:
        return _render_sign_in(request, NOT_VERIFIED, status.HTTP_400_BAD_REQUEST)

    request.session[SESSION_ACCOUNT_KEY] = account.id
    logger.info("Account %s signed in", account.id)

    target = DASHBOARD_URL if account.profile_created else PROFILE_CREATE_URL
    return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/logout")
def logout(request: Request, account_id: int = Depends(require_auth)):
    request.session.clear()
    logger.info("Account %s signed out", account_id)
    return RedirectResponse(SIGN_IN_URL, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/recover_pin", dependencies=[Depends(require_guest)])
def recover_pin_page(request: Request):
    return _render_recover(request)


@router.post("/recover_pin", dependencies=[Depends(require_guest)])
def recover_pin(request: Request, email: str = Form(""), db: Session = Depends(get_db)):
    logger.info("PIN recovery requested for %s", email)
    account = db.query(Account).filter(Account.email == email.strip().lower()).first()
    if not account:
        return _render_recover(request, error="No account found", status_code=status.HTTP_404_NOT_FOUND)

    try:
        email_services.send_pin_recovery(account.email, account.name, account.pin)
    except email_services.EmailDeliveryError:
        return _render_recover(
            request,
            error="Failed to send PIN. Please try again later.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return _render_recover(request, success="PIN sent to your email")
