"""US-1 注册/登录/身份解析测试

测试内容：
1. 注册返回 201 + token + 用户信息（不含密码哈希）
2. 重复 email / 非法 email / 短密码返回 400
3. 登录成功与两种失败路径不可区分
4. token 缺失/伪造/过期统一返回 401
"""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient
from pydantic import SecretStr
from tasktodo.gateway.security import create_access_token

TEST_PASSWORD = "password123"


class TestSignup:
    """注册"""

    async def test_signup_returns_201_with_token(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "a@x.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["token"]
        user = body["data"]
        assert user["email"] == "a@x.com"
        assert user["is_demo"] is False
        assert len(user["id"]) == 26  # ULID 长度
        assert "password" not in user
        assert "password_hash" not in user

    async def test_duplicate_email_returns_400(self, client: AsyncClient, signup):
        await signup("a@x.com")
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "a@x.com", "password": "another-password"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == {
            "code": "EMAIL_IN_USE",
            "message": "Email already in use",
        }

    async def test_invalid_email_returns_field_error(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "not-an-email", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert [d["field"] for d in error["details"]] == ["email"]

    async def test_short_password_returns_field_error(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "a@x.com", "password": "short"},
        )
        assert resp.status_code == 400
        assert [d["field"] for d in resp.json()["error"]["details"]] == ["password"]

    async def test_is_demo_flag_echoed(self, client: AsyncClient):
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "demo@example.com", "password": TEST_PASSWORD, "is_demo": True},
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["is_demo"] is True


class TestLogin:
    """登录"""

    async def test_login_success(self, client: AsyncClient, signup):
        _, user = await signup("a@x.com")
        resp = await client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["data"]["id"] == user["id"]

    async def test_wrong_password_and_unknown_email_indistinguishable(
        self, client: AsyncClient, signup
    ):
        await signup("a@x.com")
        wrong_password = await client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": "wrong-password"},
        )
        unknown_email = await client.post(
            "/api/auth/login",
            json={"email": "nobody@x.com", "password": "wrong-password"},
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"]["code"] == "INVALID_CREDENTIALS"

    async def test_email_is_case_sensitive(self, client: AsyncClient, signup):
        await signup("Bob@x.com")
        resp = await client.post(
            "/api/auth/login",
            json={"email": "bob@x.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 401

    async def test_login_token_works(self, client: AsyncClient, signup):
        await signup("a@x.com")
        login = await client.post(
            "/api/auth/login",
            json={"email": "a@x.com", "password": TEST_PASSWORD},
        )
        token = login.json()["token"]
        resp = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "a@x.com"


class TestTokenValidation:
    """token 校验"""

    async def test_missing_header_returns_401(self, client: AsyncClient):
        resp = await client.get("/api/tasks")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_garbage_token_returns_401(self, client: AsyncClient):
        resp = await client.get("/api/tasks", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    async def test_non_bearer_scheme_returns_401(self, client: AsyncClient):
        resp = await client.get("/api/tasks", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    async def test_expired_token_returns_401(self, client: AsyncClient, signup, gateway_config):
        _, user = await signup("a@x.com")
        issued = datetime.now(UTC) - timedelta(seconds=gateway_config.jwt_ttl_s + 60)
        token = create_access_token(user["id"], gateway_config, now=issued)
        resp = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_token_signed_with_other_secret_returns_401(
        self, client: AsyncClient, signup, gateway_config
    ):
        _, user = await signup("a@x.com")
        forged_config = gateway_config.model_copy(update={"jwt_secret": SecretStr("other")})
        token = create_access_token(user["id"], forged_config)
        resp = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_all_token_failures_share_one_body(self, client: AsyncClient):
        missing = await client.get("/api/tasks")
        garbage = await client.get("/api/tasks", headers={"Authorization": "Bearer x.y.z"})
        assert missing.json() == garbage.json()

    async def test_token_for_deleted_user_returns_401(self, client: AsyncClient, gateway_config):
        token = create_access_token("01JGHOST000000000000000000", gateway_config)
        resp = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
