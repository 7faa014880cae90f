from conftest import make_account, sign_in


def test_anonymous_requests_are_sent_to_sign_in(client):
    for method, path in (
        ("get", "/dashboard"),
        ("get", "/Profile_create"),
        ("post", "/create-profile"),
        ("post", "/like-image/1"),
        ("delete", "/delete-image/1"),
    ):
        response = getattr(client, method)(path, follow_redirects=False)
        assert response.status_code == 303, path
        assert response.headers["location"] == "/sign_in", path


def test_account_without_profile_is_sent_to_profile_create(client, db):
    make_account(db)
    sign_in(client)

    response = client.get("/dashboard", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/Profile_create"


def test_account_with_profile_is_sent_to_dashboard(client, db):
    make_account(db, with_profile=True)
    sign_in(client)

    response = client.get("/Profile_create", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_stale_session_is_sent_to_sign_in(client, db):
    account = make_account(db, with_profile=True)
    sign_in(client)
    db.delete(account.profile)
    db.delete(account)
    db.commit()

    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/sign_in"

    # the stale id was dropped, so guest pages open again
    assert client.get("/sign_in", follow_redirects=False).status_code == 200
