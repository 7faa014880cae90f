import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from universe.config import settings
from universe.database import get_db
from universe.models.account import Account
from universe.models.profile import Profile
from universe.schemas.account import AccountResponse
from universe.schemas.profile import ProfileCreate, ProfileResponse
from universe.services import gallery_service, image_service
from universe.services.guards import DASHBOARD_URL, PROFILE_CREATE_URL, require_no_profile, require_profile
from universe.utils.forms import first_error
from universe.utils.response import create_response, handle_exception
from universe.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profile"])


def _render_profile_create(
    request: Request,
    account: Account,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    return templates.TemplateResponse(
        request,
        "profile_create.html",
        {"user": AccountResponse.model_validate(account).model_dump(), "error": error},
        status_code=status_code,
    )


async def _read_payload(request: Request) -> dict:
    if request.headers.get("content-type", "").startswith("application/json"):
        payload = await request.json()
        return payload if isinstance(payload, dict) else {}
    form = await request.form()
    return dict(form)


@router.get("/Profile_create")
def profile_create_page(request: Request, account: Account = Depends(require_no_profile)):
    return _render_profile_create(request, account)


@router.post("/create-profile")
async def create_profile(
    request: Request,
    account: Account = Depends(require_no_profile),
    db: Session = Depends(get_db),
):
    try:
        data = ProfileCreate(**await _read_payload(request))
    except ValidationError as exc:
        return _render_profile_create(request, account, first_error(exc), status.HTTP_400_BAD_REQUEST)
    except ValueError:
        # undecodable JSON body
        return _render_profile_create(request, account, "Invalid input", status.HTTP_400_BAD_REQUEST)

    try:
        profile = gallery_service.get_profile(db, account.id)
        if profile is None:
            profile = Profile(account_id=account.id)
            db.add(profile)
        profile.display_name = data.name
        profile.gender = data.gender
        profile.bio = data.bio

        # profile row and flag flip land in the same commit
        account.profile_created = True
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Profile creation failed for account %s", account.id)
        return _render_profile_create(
            request,
            account,
            "Could not create your profile. Please try again.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("Profile %s created for account %s", profile.id, account.id)
    return RedirectResponse(DASHBOARD_URL, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/dashboard")
def dashboard(
    request: Request,
    account: Account = Depends(require_profile),
    db: Session = Depends(get_db),
):
    profile = gallery_service.get_profile(db, account.id)
    if profile is None:
        logger.warning("Account %s flagged with a profile but none exists", account.id)
        account.profile_created = False
        db.commit()
        return RedirectResponse(PROFILE_CREATE_URL, status_code=status.HTTP_303_SEE_OTHER)

    profile_payload = ProfileResponse.model_validate(profile).model_dump()
    liked = gallery_service.liked_image_ids(db, account.id, [image.id for image in profile.images])
    for image in profile_payload["images"]:
        image["liked"] = image["id"] in liked

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": AccountResponse.model_validate(account).model_dump(),
            "profile": profile_payload,
        },
    )


@router.post("/upload-pfp")
async def upload_profile_picture(
    file: UploadFile = File(...),
    account: Account = Depends(require_profile),
    db: Session = Depends(get_db),
):
    try:
        profile = gallery_service.get_profile(db, account.id)
        if not profile:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

        contents = await file.read(settings.MAX_UPLOAD_BYTES + 1)
        image_service.validate_upload(file.content_type, contents)
        path = image_service.save_profile_picture(account.id, contents)

        profile.picture_path = path
        db.commit()

        return create_response(message="Profile picture updated", data={"path": path})
    except Exception as exc:
        if not isinstance(exc, HTTPException):
            logger.exception("Profile picture upload failed for account %s", account.id)
        return handle_exception(exc)
