import cv2
import numpy as np

from conftest import make_account, sign_in
from universe.config import settings
from universe.models.account import Account
from universe.models.profile import Profile


def _png_bytes(width=90, height=60):
    ok, buffer = cv2.imencode(".png", np.full((height, width, 3), 200, np.uint8))
    assert ok
    return buffer.tobytes()


def test_profile_create_page_greets_account(client, db):
    make_account(db)
    sign_in(client)

    response = client.get("/Profile_create")

    assert response.status_code == 200
    assert "Welcome, Member" in response.text


def test_create_profile_from_json_flips_flag(client, db):
    account = make_account(db)
    sign_in(client)

    response = client.post(
        "/create-profile",
        json={"name": "Ada L.", "gender": "female", "bio": "Hello"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"
    db.expire_all()
    profile = db.query(Profile).filter(Profile.account_id == account.id).one()
    assert profile.display_name == "Ada L."
    assert profile.gender == "female"
    assert db.get(Account, account.id).profile_created is True


def test_create_profile_from_form(client, db):
    account = make_account(db)
    sign_in(client)

    response = client.post("/create-profile", data={"name": "Ada", "bio": ""}, follow_redirects=False)

    assert response.status_code == 303
    assert db.query(Profile).filter(Profile.account_id == account.id).count() == 1


def test_create_profile_requires_name(client, db):
    account = make_account(db)
    sign_in(client)

    response = client.post("/create-profile", json={"gender": "other"}, follow_redirects=False)

    assert response.status_code == 400
    db.expire_all()
    assert db.get(Account, account.id).profile_created is False
    assert db.query(Profile).count() == 0


def test_create_profile_with_malformed_json(client, db):
    account = make_account(db)
    sign_in(client)

    response = client.post(
        "/create-profile",
        content=b"{bad",
        headers={"content-type": "application/json"},
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert "Invalid input" in response.text
    db.expire_all()
    assert db.get(Account, account.id).profile_created is False
    assert db.query(Profile).count() == 0


def test_profile_can_only_be_created_once(client, db):
    make_account(db)
    sign_in(client)
    client.post("/create-profile", json={"name": "Ada"}, follow_redirects=False)

    second = client.post("/create-profile", json={"name": "Again"}, follow_redirects=False)

    assert second.headers["location"] == "/dashboard"
    assert db.query(Profile).count() == 1


def test_dashboard_shows_profile_without_pin(client, db):
    make_account(db, pin="8642", with_profile=True)
    sign_in(client, pin="8642")

    response = client.get("/dashboard")

    assert response.status_code == 200
    assert "member@x.com" in response.text
    assert "8642" not in response.text
    assert "No images yet." in response.text
    assert 'id="pfp-form"' in response.text


def test_dashboard_recovers_from_missing_profile_row(client, db):
    account = make_account(db, with_profile=True)
    sign_in(client)
    db.query(Profile).delete()
    db.commit()

    response = client.get("/dashboard", follow_redirects=False)

    assert response.headers["location"] == "/Profile_create"
    db.expire_all()
    assert db.get(Account, account.id).profile_created is False


def test_upload_profile_picture_is_resized(client, db):
    account = make_account(db, with_profile=True)
    sign_in(client)

    response = client.post("/upload-pfp", files={"file": ("me.png", _png_bytes(), "image/png")})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["path"] == f"/uploads/profile_pictures/pfp_{account.id}.jpg"

    stored = settings.UPLOAD_ROOT / "profile_pictures" / f"pfp_{account.id}.jpg"
    image = cv2.imread(str(stored))
    assert image.shape[:2] == (settings.PROFILE_PICTURE_SIZE, settings.PROFILE_PICTURE_SIZE)

    db.expire_all()
    profile = db.query(Profile).filter(Profile.account_id == account.id).one()
    assert profile.picture_path == payload["path"]

    served = client.get(payload["path"])
    assert served.status_code == 200


def test_upload_profile_picture_overwrites_previous(client, db):
    account = make_account(db, with_profile=True)
    sign_in(client)

    first = client.post("/upload-pfp", files={"file": ("a.png", _png_bytes(), "image/png")}).json()
    second = client.post("/upload-pfp", files={"file": ("b.png", _png_bytes(50, 80), "image/png")}).json()

    assert first["path"] == second["path"]
    folder = settings.UPLOAD_ROOT / "profile_pictures"
    assert [p.name for p in folder.glob(f"pfp_{account.id}.*")] == [f"pfp_{account.id}.jpg"]


def test_upload_profile_picture_rejects_non_images(client, db):
    make_account(db, with_profile=True)
    sign_in(client)

    wrong_type = client.post("/upload-pfp", files={"file": ("a.txt", b"hello", "text/plain")})
    garbage = client.post("/upload-pfp", files={"file": ("a.png", b"not an image", "image/png")})

    assert wrong_type.status_code == 400
    assert wrong_type.json()["success"] is False
    assert garbage.status_code == 400
    assert garbage.json()["message"] == "Could not read image"


def test_upload_profile_picture_enforces_size_cap(client, db, monkeypatch):
    make_account(db, with_profile=True)
    sign_in(client)
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)

    response = client.post("/upload-pfp", files={"file": ("me.png", _png_bytes(), "image/png")})

    assert response.status_code == 413
