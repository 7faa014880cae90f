import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from universe.config import settings
from universe.database import Base, engine
from universe.models import account, pending_signup, profile  # noqa: F401  (register tables)
from universe.routers import auth, gallery, signup
from universe.routers import profile as profile_router
from universe.services.guards import GuardRedirect
from universe.services.image_service import ensure_upload_dirs
from universe.utils.response import create_response, handle_exception
from universe.utils.templates import templates

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE,
    max_age=settings.SESSION_MAX_AGE,
    https_only=settings.SESSION_HTTPS_ONLY,
)

# Auto create tables
Base.metadata.create_all(bind=engine)

# Serve uploaded assets
ensure_upload_dirs()
app.mount("/uploads", StaticFiles(directory=str(settings.UPLOAD_ROOT)), name="uploads")


@app.exception_handler(GuardRedirect)
async def guard_redirect_handler(request: Request, exc: GuardRedirect):
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


# Add routes
app.include_router(signup.router)
app.include_router(auth.router)
app.include_router(profile_router.router)
app.include_router(gallery.router)


@app.get("/terms_and_conditions")
def terms_and_conditions(request: Request):
    return templates.TemplateResponse(request, "terms_and_conditions.html", {})


@app.get("/health")
def health():
    try:
        return create_response(
            message="UniVerse running",
            data={"service": settings.PROJECT_NAME},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
