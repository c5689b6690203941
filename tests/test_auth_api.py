from __future__ import annotations

from linkpage.services.session_service import SESSION_COOKIE_NAME


def _register(client, email="ana@example.com", **kwargs):
    body = {"name": "Ana", "email": email, "password": "secret1"}
    return client.post("/api/auth/register", json=body, **kwargs)


def _cookie_attributes(resp) -> set:
    header = resp.headers["set-cookie"]
    assert header.startswith(f"{SESSION_COOKIE_NAME}=")
    return {part.strip().lower() for part in header.split(";")[1:]}


def test_register_sets_session_cookie(client):
    resp = _register(client)
    assert resp.status_code == 201
    assert resp.json()["email"] == "ana@example.com"

    attrs = _cookie_attributes(resp)
    assert "httponly" in attrs
    assert "samesite=lax" in attrs
    assert "path=/" in attrs
    assert "secure" not in attrs


def test_cookie_secure_behind_https_proxy(client):
    resp = _register(client, headers={"X-Forwarded-Proto": "https"})
    assert resp.status_code == 201
    assert "secure" in _cookie_attributes(resp)


def test_cookie_session_drives_me_and_logout(client):
    _register(client)

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "ana@example.com"

    resp = client.post("/api/auth/logout")
    assert resp.json() == {"ok": True}
    assert client.get("/api/auth/me").status_code == 401


def test_duplicate_and_bad_login(client):
    _register(client)
    dup = _register(client)
    assert dup.status_code == 409
    assert dup.json() == {"error": "Email already registered."}

    client.cookies.clear()
    resp = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials."}

    resp = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret1"})
    assert resp.status_code == 200
    assert resp.json()["token"]


def test_register_is_rate_limited(client):
    for i in range(5):
        assert _register(client, email=f"user{i}@example.com").status_code == 201
    resp = _register(client, email="user5@example.com")
    assert resp.status_code == 429
    assert resp.json() == {"error": "Too many requests. Try again in a moment."}
