"""Tests for identity resolution and session handling."""

import time
from datetime import timedelta

import pytest
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.identity import EmployeeProfile, resolve_identity
from workhub.auth.jwt import create_access_token, decode_token
from workhub.auth.revocation import TokenRevocation
from workhub.config import settings
from workhub.errors import (
    DependencyFailure,
    NoActiveOrganizationError,
    NoEmployeeProfileError,
    UnauthenticatedError,
)
from workhub.models import Department, Employee, UserRole


@pytest.mark.unit
class TestJWTTokens:
    def test_create_and_decode(self):
        token = create_access_token(user_id="user-1", role="user", organization_id="org-1")
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "user"
        assert payload["org"] == "org-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_org_claim_is_optional(self):
        payload = decode_token(create_access_token(user_id="user-1", role="user"))
        assert "org" not in payload

    def test_invalid_token_decodes_to_empty(self):
        assert decode_token("not-a-jwt") == {}

    def test_expired_token_decodes_to_empty(self):
        token = create_access_token("user-1", "user", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) == {}

    def test_token_without_expiry_decodes_to_empty(self):
        token = jwt.encode(
            {"sub": "user-1", "role": "user", "type": "access"},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert decode_token(token) == {}


@pytest.mark.unit
class TestEmployeeProfile:
    def test_role_is_normalized(self):
        employee = Employee(
            id=3,
            name="Dana",
            department=Department.HR,
            role="  ADMIN ",
            is_manager=None,
        )
        profile = EmployeeProfile.from_model(employee)

        assert profile.role == "admin"
        assert profile.department == Department.HR
        assert profile.is_manager is False


@pytest.mark.auth
@pytest.mark.asyncio
class TestResolveIdentity:
    async def test_resolves_full_context(self, db_session: AsyncSession, manager):
        identity = await resolve_identity(db_session, manager.token)

        assert identity.user_id == manager.id
        assert identity.organization_id == manager.employee.organization_id
        assert identity.global_role == UserRole.USER
        assert identity.department == Department.OPERATIONS
        assert identity.is_manager is True
        assert identity.is_org_admin is False

    async def test_missing_token(self, db_session: AsyncSession):
        with pytest.raises(UnauthenticatedError):
            await resolve_identity(db_session, None)

    async def test_malformed_token(self, db_session: AsyncSession):
        with pytest.raises(UnauthenticatedError):
            await resolve_identity(db_session, "garbage")

    async def test_expired_token(self, db_session: AsyncSession, staff):
        token = create_access_token(
            staff.id, "user", staff.employee.organization_id, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(UnauthenticatedError):
            await resolve_identity(db_session, token)

    async def test_revoked_token(self, db_session: AsyncSession, staff):
        token = staff.token
        await TokenRevocation.revoke_token(token, time.time() + 300)

        with pytest.raises(UnauthenticatedError, match="revoked"):
            await resolve_identity(db_session, token)

    async def test_inactive_user(self, db_session: AsyncSession, organization, add_member):
        member = await add_member(organization, is_active=False)
        with pytest.raises(UnauthenticatedError):
            await resolve_identity(db_session, member.token)

    async def test_unknown_user(self, db_session: AsyncSession, organization):
        token = create_access_token("no-such-user", "user", organization.id)
        with pytest.raises(UnauthenticatedError):
            await resolve_identity(db_session, token)

    async def test_no_active_organization(self, db_session: AsyncSession, organization, add_member):
        member = await add_member(organization, active_organization=False)
        token = create_access_token(member.id, "user")

        with pytest.raises(NoActiveOrganizationError):
            await resolve_identity(db_session, token)

    async def test_falls_back_to_selected_organization(self, db_session: AsyncSession, staff):
        token = create_access_token(staff.id, "user")
        identity = await resolve_identity(db_session, token)
        assert identity.organization_id == staff.employee.organization_id

    async def test_deleted_organization(self, db_session: AsyncSession, staff):
        token = create_access_token(staff.id, "user", "org-that-was-deleted")
        with pytest.raises(NoActiveOrganizationError):
            await resolve_identity(db_session, token)

    async def test_no_profile_in_organization(
        self, db_session: AsyncSession, staff, other_organization
    ):
        token = create_access_token(staff.id, "user", other_organization.id)
        with pytest.raises(NoEmployeeProfileError):
            await resolve_identity(db_session, token)

    async def test_global_role_comes_from_user_record(self, db_session: AsyncSession, staff):
        # A stale or forged role claim does not elevate the caller
        token = create_access_token(staff.id, "admin", staff.employee.organization_id)
        identity = await resolve_identity(db_session, token)

        assert identity.global_role == UserRole.USER
        assert identity.is_global_admin is False

    async def test_employee_admin_role_is_org_admin(self, db_session: AsyncSession, org_admin):
        identity = await resolve_identity(db_session, org_admin.token)

        assert identity.is_global_admin is False
        assert identity.is_org_admin is True

    async def test_session_store_outage(self, db_session: AsyncSession, staff, fake_redis):
        fake_redis.fail = True
        with pytest.raises(DependencyFailure):
            await resolve_identity(db_session, staff.token)


@pytest.mark.auth
@pytest.mark.asyncio
class TestTokenRevocation:
    async def test_revoke_then_check(self, fake_redis):
        await TokenRevocation.revoke_token("tok", time.time() + 60)

        assert await TokenRevocation.is_revoked("tok") is True
        assert await TokenRevocation.is_revoked("other") is False
        assert "revoked:tok" in fake_redis.store

    async def test_expired_token_is_not_stored(self, fake_redis):
        await TokenRevocation.revoke_token("tok", time.time() - 10)
        assert fake_redis.store == {}

    async def test_outage_on_revoke(self, fake_redis):
        fake_redis.fail = True
        with pytest.raises(DependencyFailure):
            await TokenRevocation.revoke_token("tok", time.time() + 60)
