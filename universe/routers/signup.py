import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from universe.database import get_db
from universe.models.account import Account
from universe.schemas.account import SignupForm
from universe.services import email_services, otp_service
from universe.services.guards import SESSION_SIGNUP_KEY, SIGN_IN_URL, require_guest
from universe.services.otp_service import VerificationResult
from universe.utils.forms import first_error
from universe.utils.response import create_response, handle_exception
from universe.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Signup"])

VERIFY_URL = "/verify_email"
SIGNUP_URL = "/"


def _render_signup(request: Request, error: str | None = None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(request, "index.html", {"error": error}, status_code=status_code)


def _render_verify(request: Request, email: str, error: str | None = None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(
        request,
        "verify_email.html",
        {"email": email, "error": error},
        status_code=status_code,
    )


@router.get("/", dependencies=[Depends(require_guest)])
def signup_page(request: Request):
    return _render_signup(request)


@router.post("/", dependencies=[Depends(require_guest)])
def signup(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    phone: str | None = Form(None),
    dob: str | None = Form(None),
    pin: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        form = SignupForm(name=name.strip(), email=email.strip(), phone=phone, dob=dob, pin=pin.strip())
    except ValidationError as exc:
        return _render_signup(request, first_error(exc), status.HTTP_400_BAD_REQUEST)

    if db.query(Account).filter(Account.email == form.email.lower()).first():
        logger.info("Signup for already registered email %s", form.email)
        return RedirectResponse(SIGN_IN_URL, status_code=status.HTTP_303_SEE_OTHER)

    pending = otp_service.stage_signup(db, form, token=request.session.get(SESSION_SIGNUP_KEY))
    try:
        email_services.send_verification_code(pending.email, pending.name, pending.code)
    except email_services.EmailDeliveryError:
        otp_service.discard(db, pending)
        request.session.pop(SESSION_SIGNUP_KEY, None)
        return _render_signup(
            request,
            "We could not send the verification email. Please try again later.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    request.session[SESSION_SIGNUP_KEY] = pending.token
    return RedirectResponse(VERIFY_URL, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/verify_email")
def verify_email_page(request: Request, db: Session = Depends(get_db)):
    pending = otp_service.get_pending_signup(db, request.session.get(SESSION_SIGNUP_KEY))
    if not pending:
        request.session.pop(SESSION_SIGNUP_KEY, None)
        return RedirectResponse(SIGNUP_URL, status_code=status.HTTP_303_SEE_OTHER)
    return _render_verify(request, pending.email)


@router.post("/verify_email")
def verify_email(request: Request, code: str = Form(""), db: Session = Depends(get_db)):
    token = request.session.get(SESSION_SIGNUP_KEY)
    pending = otp_service.get_pending_signup(db, token)
    email = pending.email if pending else None

    result, _account = otp_service.verify_code(db, token, code)

    if result == VerificationResult.mismatch:
        return _render_verify(request, email, "Incorrect verification code", status.HTTP_400_BAD_REQUEST)

    request.session.pop(SESSION_SIGNUP_KEY, None)

    if result == VerificationResult.missing:
        return RedirectResponse(SIGNUP_URL, status_code=status.HTTP_303_SEE_OTHER)
    if result == VerificationResult.expired:
        return _render_signup(
            request,
            "Your verification code has expired. Please sign up again.",
            status.HTTP_400_BAD_REQUEST,
        )
    if result == VerificationResult.locked:
        return _render_signup(
            request,
            "Too many incorrect codes. Please sign up again.",
            status.HTTP_400_BAD_REQUEST,
        )
    # verified or email_taken: either way the account now exists
    return RedirectResponse(SIGN_IN_URL, status_code=status.HTTP_303_SEE_OTHER)


@router.post("/resend-otp")
def resend_otp(request: Request, db: Session = Depends(get_db)):
    try:
        pending = otp_service.get_pending_signup(db, request.session.get(SESSION_SIGNUP_KEY))
        if not pending:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No signup in progress")

        try:
            otp_service.refresh_code(
                db,
                pending,
                send=lambda row: email_services.send_verification_code(row.email, row.name, row.code),
            )
        except otp_service.ResendTooSoon as exc:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc

        return create_response(message="Verification code resent")
    except email_services.EmailDeliveryError as exc:
        return handle_exception(exc, "Could not send verification email")
    except Exception as exc:
        if not isinstance(exc, HTTPException):
            logger.exception("Resend failed")
        return handle_exception(exc)
