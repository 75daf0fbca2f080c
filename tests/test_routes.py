"""End-to-end tests through the HTTP API."""
import pytest

from fastapi.testclient import TestClient

from identity_api.main import app
from identity_api.services.email_service import get_mailer
from identity_api.services.storage_service import MAX_DOCUMENT_SIZE_BYTES, MAX_FILE_SIZE_BYTES


def signup(client, mailer, email="new@x.com", name="New User", password="goodpass1", gender="female"):
    sent = client.post("/auth/send-otp", json={"email": email})
    assert sent.status_code == 200, sent.text
    return client.post("/auth/signup", json={
        "name": name,
        "email": email,
        "password": password,
        "gender": gender,
        "otp": mailer.last_code(),
        "hash": sent.json()["hash"],
    })


def signin(client, email="new@x.com", password="goodpass1"):
    response = client.post("/auth/signin", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestSignup:

    def test_send_otp(self, client, mailer):
        response = client.post("/auth/send-otp", json={"email": "new@x.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "OTP sent successfully"
        assert "." in body["hash"]
        assert len(mailer.last_code()) == 8

    def test_signup_creates_the_account(self, client, mailer):
        response = signup(client, mailer, gender="non binary")

        assert response.status_code == 201, response.text
        user = response.json()["user"]
        assert user["email"] == "new@x.com"
        assert user["gender"] == "non-binary"
        assert user["is_address_complete"] is False
        assert user["avatar_url"].startswith("https://robohash.org/")
        assert "hashed_password" not in user
        assert "password" not in user

    def test_send_otp_for_registered_email(self, client, make_user):
        make_user(email="alice@x.com")
        response = client.post("/auth/send-otp", json={"email": "alice@x.com"})

        assert response.status_code == 409
        assert response.json()["detail"] == "User already exists with this email"

    def test_send_otp_for_disallowed_domain(self, client, mailer):
        response = client.post("/auth/send-otp", json={"email": "someone@yahoo.com"})
        assert response.status_code == 400
        assert "allowed domain" in response.json()["detail"]
        assert mailer.outbox == []

    def test_send_otp_when_mail_is_down(self, client, mailer):
        mailer.fail = True
        response = client.post("/auth/send-otp", json={"email": "new@x.com"})
        assert response.status_code == 502

    def test_wrong_otp(self, client, mailer):
        sent = client.post("/auth/send-otp", json={"email": "new@x.com"}).json()
        code = mailer.last_code()
        wrong = "12345678" if code != "12345678" else "87654321"
        response = client.post("/auth/signup", json={
            "name": "New", "email": "new@x.com", "password": "goodpass1",
            "gender": "male", "otp": wrong, "hash": sent["hash"],
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid OTP"

    def test_short_password(self, client, mailer):
        response = signup(client, mailer, password="short")
        assert response.status_code == 400
        assert response.json()["detail"] == "Password must be at least 8 characters long"

    def test_missing_field_is_a_400(self, client):
        response = client.post("/auth/signup", json={"email": "new@x.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Field required"

    def test_blank_name_is_a_400(self, client, mailer):
        response = signup(client, mailer, name="   ")
        assert response.status_code == 400
        assert response.json()["detail"] == "Name cannot be empty"


class TestSession:

    def test_signin_sets_cookie_and_returns_claims(self, client, mailer):
        signup(client, mailer)
        response = client.post("/auth/signin", json={"email": "new@x.com", "password": "goodpass1"})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["name"] == "New User"
        assert "session" in response.cookies

    @pytest.mark.parametrize("email, password", [
        ("new@x.com", "wrongpass1"),
        ("ghost@x.com", "goodpass1"),
    ])
    def test_bad_credentials_look_the_same(self, client, mailer, email, password):
        signup(client, mailer)
        response = client.post("/auth/signin", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_session_requires_a_token(self, client):
        response = client.get("/auth/session")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_garbage_token(self, client):
        response = client.get("/auth/session", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_session_from_cookie_and_logout(self, client, mailer):
        signup(client, mailer)
        signin(client)

        assert client.get("/auth/session").json()["user"]["email"] == "new@x.com"

        assert client.post("/auth/logout").json() == {"message": "Signed out"}
        assert client.get("/auth/session").status_code == 401

    def test_profile_edit_needs_a_refresh_to_show_in_the_session(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)

        updated = client.patch("/profile/update", json={"name": "Renamed"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["user"]["name"] == "Renamed"

        # stale until refreshed
        assert client.get("/auth/session", headers=headers).json()["user"]["name"] == "New User"

        refreshed = client.post("/auth/session/refresh", headers=headers)
        assert refreshed.status_code == 200
        assert refreshed.json()["user"]["name"] == "Renamed"

        fresh_headers = {"Authorization": f"Bearer {refreshed.json()['access_token']}"}
        assert client.get("/auth/session", headers=fresh_headers).json()["user"]["name"] == "Renamed"


class TestForgotPassword:

    def test_full_reset(self, client, mailer, make_user):
        make_user(name="Alice", email="alice@x.com", password="old-password")

        sent = client.post("/auth/forgot-password/verify", json={"name": " alice ", "email": "alice@x.com"})
        assert sent.status_code == 200
        code = mailer.last_code()
        assert len(code) == 6

        reset = client.post("/auth/forgot-password/reset", json={
            "email": "alice@x.com", "otp": code, "hash": sent.json()["hash"], "new_password": "new-password",
        })
        assert reset.status_code == 200
        assert reset.json()["message"] == "Password reset successfully"

        signin(client, "alice@x.com", "new-password")
        old = client.post("/auth/signin", json={"email": "alice@x.com", "password": "old-password"})
        assert old.status_code == 401

    def test_name_mismatch(self, client, make_user):
        make_user(name="Alice")
        response = client.post("/auth/forgot-password/verify", json={"name": "Alicia", "email": "alice@x.com"})
        assert response.status_code == 400

    def test_unknown_email(self, client):
        response = client.post("/auth/forgot-password/verify", json={"name": "Ghost", "email": "ghost@x.com"})
        assert response.status_code == 404
        assert response.json()["detail"] == "No account found with this email"

    def test_expired_hash(self, client, make_user):
        make_user()
        response = client.post("/auth/forgot-password/reset", json={
            "email": "alice@x.com", "otp": "123456", "hash": f"{'0' * 64}.1", "new_password": "new-password",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "OTP has expired. Please request a new one."


class TestProfile:

    def test_get_profile(self, client, mailer):
        signup(client, mailer)
        response = client.get("/profile", headers=signin(client))

        assert response.status_code == 200
        assert response.json()["email"] == "new@x.com"
        assert "hashed_password" not in response.json()

    def test_profile_requires_session(self, client):
        assert client.get("/profile").status_code == 401

    def test_complete_address(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)
        response = client.post("/profile/complete", headers=headers, json={
            "state": "Karnataka", "city": "Bengaluru", "postal_code": "560001",
        })

        assert response.status_code == 200
        assert response.json()["user"]["is_address_complete"] is True

    def test_complete_address_rejects_bad_postal_code(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)
        response = client.post("/profile/complete", headers=headers, json={
            "state": "Karnataka", "city": "Bengaluru", "postal_code": "400001",
        })

        assert response.status_code == 400
        assert client.get("/profile", headers=headers).json()["is_address_complete"] is False

    def test_complete_address_requires_every_part(self, client, mailer):
        signup(client, mailer)
        response = client.post("/profile/complete", headers=signin(client), json={
            "state": "Karnataka", "city": " ", "postal_code": "560001",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "State, City and Postal code are required"


class TestUploads:

    def test_upload_and_delete(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)

        uploaded = client.post("/uploads/image", headers=headers,
                               files={"file": ("me.png", b"\x89PNG fake", "image/png")})
        assert uploaded.status_code == 200, uploaded.text
        url = uploaded.json()["secure_url"]
        assert url.startswith("https://cdn.test.local/communities/")

        deleted = client.request("DELETE", "/uploads/image", headers=headers, json={"url": url})
        assert deleted.status_code == 200
        assert deleted.json()["result"] == "ok"

        again = client.request("DELETE", "/uploads/image", headers=headers, json={"url": url})
        assert again.status_code == 404

    def test_foreign_url_is_ignored(self, client, mailer):
        signup(client, mailer)
        response = client.request("DELETE", "/uploads/image", headers=signin(client),
                                  json={"url": "https://elsewhere.example.com/a.png"})
        assert response.status_code == 200
        assert response.json()["result"] == "ignored"

    def test_rejects_non_images(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/image", headers=signin(client),
                               files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400

    def test_rejects_large_files(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/image", headers=signin(client),
                               files={"file": ("big.png", b"0" * (MAX_FILE_SIZE_BYTES + 1), "image/png")})
        assert response.status_code == 413

    def test_upload_requires_session(self, client):
        response = client.post("/uploads/image", files={"file": ("me.png", b"x", "image/png")})
        assert response.status_code == 401

    def test_upload_document(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/document", headers=signin(client),
                               files={"file": ("terms.pdf", b"%PDF-1.4 fake", "application/pdf")})
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["secure_url"].endswith(".pdf")
        assert body["file_name"] == "terms.pdf"

    def test_document_must_be_a_pdf(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/document", headers=signin(client),
                               files={"file": ("me.png", b"\x89PNG fake", "image/png")})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid file type. Please upload a PDF."

    def test_empty_document(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/document", headers=signin(client),
                               files={"file": ("empty.pdf", b"", "application/pdf")})
        assert response.status_code == 400

    def test_document_size_limit(self, client, mailer):
        signup(client, mailer)
        response = client.post("/uploads/document", headers=signin(client),
                               files={"file": ("big.pdf", b"0" * (MAX_DOCUMENT_SIZE_BYTES + 1), "application/pdf")})
        assert response.status_code == 413

    def test_document_upload_requires_session(self, client):
        response = client.post("/uploads/document", files={"file": ("a.pdf", b"%PDF", "application/pdf")})
        assert response.status_code == 401


class TestMail:

    MESSAGE = {"to": "bob@x.com", "subject": "Hello", "html": "<p>hi</p>"}

    def test_requires_session(self, client, mailer):
        response = client.post("/mail/send", json=self.MESSAGE)
        assert response.status_code == 401
        assert mailer.outbox == []

    def test_send(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)
        response = client.post("/mail/send", headers=headers, json={
            **self.MESSAGE,
            "cc": ["carol@x.com"],
            "reply_to": "support@x.com",
            "attachments": [{"filename": "a.txt", "content": "aGVsbG8="}],
        })

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["success"] is True
        assert body["message_id"] == "<msg-2@test>"
        assert body["duration"].endswith("ms")

        sent = mailer.outbox[-1]
        assert sent["to"] == ["bob@x.com"]
        assert sent["cc"] == ["carol@x.com"]
        assert sent["bcc"] is None
        assert sent["reply_to"] == "support@x.com"
        assert sent["text"] == "This email requires HTML support"
        assert sent["attachments"] == [{"filename": "a.txt", "content": "aGVsbG8=", "type": None}]

    @pytest.mark.parametrize("change, detail", [
        ({"subject": "  "}, "Email subject required"),
        ({"html": ""}, "Email content (html) required"),
        ({"to": []}, "Recipient email(s) required"),
    ])
    def test_incomplete_message(self, client, mailer, change, detail):
        signup(client, mailer)
        response = client.post("/mail/send", headers=signin(client), json={**self.MESSAGE, **change})
        assert response.status_code == 400
        assert response.json()["detail"] == detail

    def test_attachment_must_be_base64(self, client, mailer):
        signup(client, mailer)
        response = client.post("/mail/send", headers=signin(client), json={
            **self.MESSAGE, "attachments": [{"filename": "a.txt", "content": "not base64!"}],
        })
        assert response.status_code == 400

    def test_delivery_failure(self, client, mailer):
        signup(client, mailer)
        headers = signin(client)
        mailer.fail = True
        response = client.post("/mail/send", headers=headers, json=self.MESSAGE)
        assert response.status_code == 502


def test_shutdown_closes_the_mailer_client():
    app.dependency_overrides.clear()
    get_mailer.cache_clear()
    http_client = get_mailer()._get_http_client()
    try:
        with TestClient(app):
            pass
        assert http_client.is_closed
        assert get_mailer.cache_info().currsize == 0
    finally:
        get_mailer.cache_clear()
