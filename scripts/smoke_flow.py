#!/usr/bin/env python3
"""
起動中のサーバーに対して、プロフィールの作成から GDPR 削除までを一通り叩く。

    uvicorn accounts.main:app
    python scripts/smoke_flow.py [BASE_URL]
"""
import json
import sys
import uuid
from urllib import request, error

BASE_URL = "http://127.0.0.1:8000"


def api(method, path, body=None, user=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if user is not None:
        headers["X-User-Id"] = user
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}
    except OSError as e:
        return 0, {"detail": str(e)}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def must_status(status, data, expected, label):
    if status != expected:
        raise RuntimeError(f"{label}: expected {expected}, got {status} {data}")


def main():
    owner = f"smoke-{uuid.uuid4().hex[:8]}"
    other = f"smoke-{uuid.uuid4().hex[:8]}"
    username = f"alice_{owner[-4:]}"

    status, profile = api(
        "POST",
        "/api/profiles",
        {"username": username, "display_name": "Alice"},
        user=owner,
    )
    profile = must_ok(status, profile, "create profile")
    profile_id = profile["id"]
    print(f"created profile {profile_id} (picture={profile['picture_url']})")

    status, data = api("PUT", f"/api/profiles/{profile_id}", {"display_name": "Alicia"}, user=owner)
    must_status(status, data, 204, "update name")

    status, data = api("GET", f"/api/profiles/{profile_id}")
    data = must_ok(status, data, "get profile")
    assert data["display_name"] == "Alicia", data

    status, data = api("GET", f"/api/profiles/search?q={username[:5]}")
    data = must_ok(status, data, "search")
    assert any(p["id"] == profile_id for p in data), data

    status, data = api("DELETE", f"/api/profiles/{profile_id}", user=other)
    must_status(status, data, 403, "delete as other user")

    status, data = api("DELETE", "/api/accounts/me", user=owner)
    data = must_ok(status, data, "delete account")
    print(f"account deleted at {data['deletedAt']}")

    status, data = api("GET", f"/api/profiles/{profile_id}")
    must_status(status, data, 404, "profile after account deletion")

    print("smoke flow OK")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        BASE_URL = sys.argv[1].rstrip("/")
    try:
        main()
    except (RuntimeError, AssertionError) as e:
        print(f"smoke flow FAILED: {e}")
        sys.exit(1)
