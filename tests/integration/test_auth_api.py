"""
HTTP tests for authentication and chat endpoints.
"""

import pytest

API = "/api/v1"

ALICE = {
    "username": "alice",
    "email": "alice@example.com",
    "phone_number": "0551234567",
    "password": "secret123",
}
BOB = {
    "username": "bob",
    "email": "bob@example.com",
    "phone_number": "5550000001",
    "password": "secret456",
}


async def register(client, data=ALICE) -> dict:
    response = await client.post(f"{API}/auth/register", json=data)
    assert response.status_code == 201, response.text
    return response.json()


def bearer(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


class TestRegistration:

    async def test_register_returns_tokens(self, client):
        body = await register(client)

        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["refresh_token"]
        user = body["user"]
        assert user["username"] == "alice"
        assert user["phone_number"] == "0551234567"
        assert user["role"] == "user"
        assert user["is_email_verified"] is False
        assert user["avatar"] == {"url": "", "public_id": ""}
        assert "password_hash" not in user
        assert "refresh_token" not in user

    async def test_duplicate_email(self, client):
        await register(client)
        response = await client.post(
            f"{API}/auth/register",
            json={**BOB, "email": "Alice@example.com"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "duplicate_field"
        assert body["field"] == "email"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"phone_number": 5551234567},
            {"phone_number": "555123"},
            {"password": "short1"},
            {"password": "lettersonly"},
            {"email": "not-an-email"},
        ],
    )
    async def test_invalid_registration(self, client, overrides):
        response = await client.post(f"{API}/auth/register", json={**ALICE, **overrides})
        assert response.status_code == 422


class TestLogin:

    @pytest.mark.parametrize("identifier", ["alice", "ALICE@example.com"])
    async def test_login(self, client, identifier):
        await register(client)
        response = await client.post(
            f"{API}/auth/login",
            json={"identifier": identifier, "password": "secret123"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

    @pytest.mark.parametrize("identifier,password", [("alice", "wrong"), ("nobody", "secret123")])
    async def test_bad_credentials(self, client, identifier, password):
        await register(client)
        response = await client.post(
            f"{API}/auth/login",
            json={"identifier": identifier, "password": password},
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["code"] == "bad_credentials"

    async def test_me(self, client):
        tokens = await register(client)

        response = await client.get(f"{API}/auth/me", headers=bearer(tokens))
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}])
    async def test_me_requires_valid_token(self, client, headers):
        response = await client.get(f"{API}/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_refresh_token_is_not_an_access_token(self, client):
        tokens = await register(client)
        response = await client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {tokens['refresh_token']}"},
        )
        assert response.status_code == 401


class TestSessions:

    async def test_refresh_rotates(self, client):
        tokens = await register(client)

        response = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200
        rotated = response.json()
        assert rotated["refresh_token"] != tokens["refresh_token"]

        replay = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert replay.status_code == 401
        assert replay.json()["code"] == "token_revoked"

    async def test_logout_revokes_refresh(self, client):
        tokens = await register(client)

        response = await client.post(f"{API}/auth/logout", headers=bearer(tokens))
        assert response.status_code == 200

        response = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    async def test_change_password(self, client):
        tokens = await register(client)

        wrong = await client.post(
            f"{API}/auth/change-password",
            json={"current_password": "nope", "new_password": "newpass456"},
            headers=bearer(tokens),
        )
        assert wrong.status_code == 400

        response = await client.post(
            f"{API}/auth/change-password",
            json={"current_password": "secret123", "new_password": "newpass456"},
            headers=bearer(tokens),
        )
        assert response.status_code == 200

        login = await client.post(
            f"{API}/auth/login", json={"identifier": "alice", "password": "newpass456"}
        )
        assert login.status_code == 200

    async def test_update_profile(self, client):
        tokens = await register(client)

        response = await client.patch(
            f"{API}/auth/me",
            json={"first_name": "Alice", "avatar": {"url": "https://cdn/a.png", "public_id": "a"}},
            headers=bearer(tokens),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["first_name"] == "Alice"
        assert body["avatar"]["url"] == "https://cdn/a.png"


class TestVerification:

    async def test_email_verification(self, client, notifier):
        tokens = await register(client)

        response = await client.post(f"{API}/auth/verify-email/request", headers=bearer(tokens))
        assert response.status_code == 200
        token = notifier.last("email")

        response = await client.post(
            f"{API}/auth/verify-email/confirm", json={"code": token}, headers=bearer(tokens)
        )
        assert response.status_code == 200

        me = await client.get(f"{API}/auth/me", headers=bearer(tokens))
        assert me.json()["is_email_verified"] is True

        again = await client.post(
            f"{API}/auth/verify-email/confirm", json={"code": token}, headers=bearer(tokens)
        )
        assert again.status_code == 400

    async def test_phone_verification(self, client, notifier):
        tokens = await register(client)

        await client.post(f"{API}/auth/verify-phone/request", headers=bearer(tokens))
        otp = notifier.last("phone")
        assert len(otp) == 6 and otp.isdigit()

        wrong = "000000" if otp != "000000" else "111111"
        response = await client.post(
            f"{API}/auth/verify-phone/confirm", json={"code": wrong}, headers=bearer(tokens)
        )
        assert response.status_code == 400

        response = await client.post(
            f"{API}/auth/verify-phone/confirm", json={"code": otp}, headers=bearer(tokens)
        )
        assert response.status_code == 200


class TestPasswordReset:

    async def test_reset_flow(self, client, notifier):
        await register(client)

        response = await client.post(
            f"{API}/auth/forgot-password", json={"identifier": "alice@example.com"}
        )
        assert response.status_code == 200
        token = notifier.last("reset")

        response = await client.post(
            f"{API}/auth/reset-password", json={"token": token, "new_password": "newpass456"}
        )
        assert response.status_code == 200

        replay = await client.post(
            f"{API}/auth/reset-password", json={"token": token, "new_password": "other789x"}
        )
        assert replay.status_code == 400

        login = await client.post(
            f"{API}/auth/login", json={"identifier": "alice", "password": "newpass456"}
        )
        assert login.status_code == 200

    async def test_unknown_account_looks_the_same(self, client, notifier):
        await register(client)

        known = await client.post(f"{API}/auth/forgot-password", json={"identifier": "alice"})
        unknown = await client.post(f"{API}/auth/forgot-password", json={"identifier": "nobody"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert [kind for kind, _, _ in notifier.sent] == ["reset"]


class TestChatsApi:

    async def test_conversation(self, client):
        alice = await register(client)
        bob = await register(client, BOB)

        response = await client.post(
            f"{API}/chats",
            json={"name": "pair", "participant_ids": [bob["user"]["id"]]},
            headers=bearer(alice),
        )
        assert response.status_code == 201
        chat = response.json()
        assert set(chat["participant_ids"]) == {alice["user"]["id"], bob["user"]["id"]}

        response = await client.post(
            f"{API}/chats/{chat['id']}/messages",
            json={"content": "hi bob"},
            headers=bearer(alice),
        )
        assert response.status_code == 201

        response = await client.get(f"{API}/chats/{chat['id']}/messages", headers=bearer(bob))
        assert response.status_code == 200
        assert [m["content"] for m in response.json()] == ["hi bob"]

        listed = await client.get(f"{API}/chats", headers=bearer(bob))
        assert [c["id"] for c in listed.json()] == [chat["id"]]

    async def test_outsiders_cannot_read(self, client):
        alice = await register(client)
        bob = await register(client, BOB)

        response = await client.post(f"{API}/chats", json={"name": "solo"}, headers=bearer(alice))
        chat = response.json()

        response = await client.get(f"{API}/chats/{chat['id']}", headers=bearer(bob))
        assert response.status_code == 404

    async def test_unknown_participant(self, client):
        alice = await register(client)
        response = await client.post(
            f"{API}/chats",
            json={"name": "pair", "participant_ids": ["00000000-0000-0000-0000-000000000000"]},
            headers=bearer(alice),
        )
        assert response.status_code == 400


async def test_health_and_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"] == "abc-123"

    response = await client.get("/health", headers={"X-Request-ID": "bad id!"})
    assert response.headers["X-Request-ID"] != "bad id!"
