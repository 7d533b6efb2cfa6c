"""
DevTasks Backend - Authentication and Role Gate Tests
======================================================

What we test:
    ✅ Bearer header parsing
    ✅ Every authentication failure message (missing, expired, invalid,
       unknown user, deactivated, store failure, unconfigured secret)
    ✅ Token issue / verify round trip with real PyJWT tokens
    ✅ Role gate allow / deny
"""

import jwt
import pytest

from devtasks.auth.gates import (
    ACCOUNT_DEACTIVATED,
    NOT_LOGGED_IN,
    TOKEN_EXPIRED,
    TOKEN_INVALID,
    USER_GONE,
    AuthenticationGate,
    check_role,
    extract_bearer_token,
)
from devtasks.auth.principal import Role
from devtasks.auth.tokens import TokenVerifier
from devtasks.exceptions import ForbiddenError, InternalError, NotAuthenticatedError


class TestExtractBearerToken:

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic abc", "bearer abc", "Bearer a b"])
    def test_rejected_headers(self, header):
        assert extract_bearer_token(header) is None


class TestAuthenticationGate:

    @pytest.fixture(autouse=True)
    def _gate(self, verifier, fake_store, make_principal):
        self.verifier = verifier
        self.store = fake_store
        self.gate = AuthenticationGate(verifier, fake_store)
        self.user = fake_store.add_principal(make_principal(Role.TEAM_LEADER))

    def _header(self, token: str) -> str:
        return f"Bearer {token}"

    @pytest.mark.asyncio
    async def test_valid_token_resolves_principal(self):
        principal = await self.gate.authenticate(self._header(self.verifier.issue(self.user.id)))
        assert principal == self.user

    @pytest.mark.asyncio
    async def test_missing_header(self):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(None)
        assert exc_info.value.message == NOT_LOGGED_IN
        assert exc_info.value.status_code == 401
        assert self.store.calls == []

    @pytest.mark.asyncio
    async def test_expired_token(self, expired_token):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(expired_token(self.user.id)))
        assert exc_info.value.message == TOKEN_EXPIRED

    @pytest.mark.asyncio
    async def test_wrong_signature(self):
        forged = TokenVerifier(secret="some-other-secret-of-at-least-32-bytes").issue(self.user.id)
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(forged))
        assert exc_info.value.message == TOKEN_INVALID

    @pytest.mark.asyncio
    async def test_garbage_token(self):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate("Bearer not-a-jwt")
        assert exc_info.value.message == TOKEN_INVALID

    @pytest.mark.asyncio
    async def test_subject_must_be_an_identifier(self):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(self.verifier.issue("admin")))
        assert exc_info.value.message == TOKEN_INVALID

    def test_expired_and_invalid_messages_differ(self):
        assert TOKEN_EXPIRED != TOKEN_INVALID

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        token = self.verifier.issue("0123456789abcdef01234567")
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(token))
        assert exc_info.value.message == USER_GONE

    @pytest.mark.asyncio
    async def test_deactivated_user(self, make_principal):
        inactive = self.store.add_principal(make_principal(Role.SOFTWARE_ENGINEER, is_active=False))
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(self.verifier.issue(inactive.id)))
        assert exc_info.value.message == ACCOUNT_DEACTIVATED

    @pytest.mark.asyncio
    async def test_store_failure_is_401(self):
        self.store.fail_with = ConnectionError("db down")
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.gate.authenticate(self._header(self.verifier.issue(self.user.id)))
        assert exc_info.value.message == "Authentication failed"

    @pytest.mark.asyncio
    async def test_unconfigured_secret_is_500(self):
        gate = AuthenticationGate(TokenVerifier(secret=""), self.store)
        with pytest.raises(InternalError) as exc_info:
            await gate.authenticate("Bearer whatever")
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "JWT secret not configured"
        assert exc_info.value.is_operational is True


class TestTokenVerifier:

    def test_round_trip_claims(self, verifier):
        token = verifier.issue("507f1f77bcf86cd799439011", role="CEO")
        claims = verifier.verify(token)
        assert claims.subject_id == "507f1f77bcf86cd799439011"
        assert claims.role == "CEO"
        assert claims.expires_at > claims.issued_at

    def test_missing_exp_is_invalid(self, verifier):
        token = jwt.encode({"sub": "507f1f77bcf86cd799439011", "iat": 0}, verifier.secret, algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verifier.verify(token)

    def test_expired_raises_expired(self, verifier, expired_token):
        with pytest.raises(jwt.ExpiredSignatureError):
            verifier.verify(expired_token("507f1f77bcf86cd799439011"))


class TestRoleGate:

    def test_allowed_role_passes(self, make_principal):
        pm = make_principal(Role.PROJECT_MANAGER)
        assert check_role(pm, [Role.CEO, Role.PROJECT_MANAGER]) is pm

    def test_disallowed_role_is_403(self, make_principal):
        engineer = make_principal(Role.SOFTWARE_ENGINEER)
        with pytest.raises(ForbiddenError) as exc_info:
            check_role(engineer, [Role.CEO])
        assert exc_info.value.message == "You do not have permission to perform this action"
        assert exc_info.value.status_code == 403

    def test_no_principal_is_401(self):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            check_role(None, [Role.CEO])
        assert exc_info.value.message == "User not authenticated"

    def test_allowed_roles_may_be_a_generator(self, make_principal):
        lead = make_principal(Role.TEAM_LEADER)
        assert check_role(lead, (r for r in Role if r is not Role.CEO)) is lead
