"""Tests for the self-service provisioning pipeline."""

import asyncio

import pytest
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import ErrorReason, IdentityError, ProvisioningError
from app.models.signup import SignupRequest, SignupStatus
from app.models.tenant import Tenant
from app.models.user import User
from app.services.identity import LocalIdentityProvider
from app.services.provisioning import ProvisioningPipeline, SignupData
from app.services.slugs import SlugValidator
from tests.fakes import BrokenDependentsStore, FakeIdentityProvider, FakeTenantStore


def _signup(**overrides) -> SignupData:
    data = {
        "company_name": "Acme Capital",
        "contact_name": "Ada Lovelace",
        "contact_email": "ada@acmecapital.com",
        "password": "s3cret-pass",
        "phone": "+1 555 0100",
    }
    data.update(overrides)
    return SignupData(**data)


def _pipeline(store, identity) -> ProvisioningPipeline:
    return ProvisioningPipeline(store, identity, SlugValidator(store), get_settings())


# ── With in-memory fakes ─────────────────────────────────────


@pytest.mark.asyncio
async def test_happy_path_derives_slug_from_company_name():
    store, identity = FakeTenantStore(), FakeIdentityProvider()

    result = await _pipeline(store, identity).provision(_signup())

    assert result.success is True
    assert result.slug == "acme-capital"
    assert result.subdomain_url == "https://acme-capital.example.com"
    assert store.signups[result.signup_request_id]["status"] == "completed"
    assert store.signups[result.signup_request_id]["tenant_id"] == result.tenant_id
    assert len(identity.users) == 1


@pytest.mark.asyncio
async def test_local_origin_gets_query_param_url():
    result = await _pipeline(FakeTenantStore(), FakeIdentityProvider()).provision(
        _signup(requested_slug="acme"), origin="http://localhost:3000"
    )
    assert result.subdomain_url == "http://localhost:3000?tenant=acme"


@pytest.mark.asyncio
async def test_invalid_slug_stops_before_any_write():
    store, identity = FakeTenantStore(), FakeIdentityProvider()

    result = await _pipeline(store, identity).provision(_signup(requested_slug="ab"))

    assert result.success is False
    assert result.error == ErrorReason.INVALID_SUBDOMAIN
    assert result.message == "Subdomain must be at least 3 characters long"
    assert result.signup_request_id is None
    assert store.calls["create_signup_request"] == 0
    assert identity.users == {}


@pytest.mark.asyncio
async def test_taken_slug_is_rejected():
    store = FakeTenantStore()
    store.add_tenant("acme-capital")

    result = await _pipeline(store, FakeIdentityProvider()).provision(_signup())

    assert result.error == ErrorReason.RESERVED_OR_TAKEN
    assert store.calls["create_signup_request"] == 0


@pytest.mark.asyncio
async def test_signup_request_failure():
    store = FakeTenantStore()

    async def _fail(**kwargs):
        raise ConnectionError("store is down")

    store.create_signup_request = _fail
    result = await _pipeline(store, FakeIdentityProvider()).provision(_signup())

    assert result.error == ErrorReason.SIGNUP_REQUEST_FAILED
    assert result.message == "Failed to create signup request"


@pytest.mark.asyncio
async def test_identity_failure_marks_signup_failed():
    store, identity = FakeTenantStore(), FakeIdentityProvider()
    identity.sign_up_error = IdentityError("User already registered")

    result = await _pipeline(store, identity).provision(_signup())

    assert result.success is False
    assert result.error == ErrorReason.IDENTITY_CREATION_FAILED
    assert result.message == "Failed to create user account: User already registered"
    assert store.signups[result.signup_request_id]["status"] == "failed"
    assert store.calls["provision_tenant"] == 0


@pytest.mark.asyncio
async def test_identity_provider_crash_marks_signup_failed():
    store, identity = FakeTenantStore(), FakeIdentityProvider()
    identity.sign_up_error = ConnectionError("db locked")

    result = await _pipeline(store, identity).provision(_signup())

    assert result.success is False
    assert result.error == ErrorReason.IDENTITY_CREATION_FAILED
    assert result.message == "Failed to create user account"
    assert result.signup_request_id is not None
    assert store.signups[result.signup_request_id]["status"] == "failed"
    assert store.calls["provision_tenant"] == 0


@pytest.mark.asyncio
async def test_tenant_failure_discards_identity():
    store, identity = FakeTenantStore(), FakeIdentityProvider()
    store.provision_error = ProvisioningError("disk full", ErrorReason.TENANT_CREATION_FAILED)

    result = await _pipeline(store, identity).provision(_signup())

    assert result.error == ErrorReason.TENANT_CREATION_FAILED
    assert store.signups[result.signup_request_id]["reason"] == ErrorReason.TENANT_CREATION_FAILED
    assert len(identity.deleted) == 1
    assert identity.users == {}


@pytest.mark.asyncio
async def test_identity_is_discarded_when_marking_failed_errors():
    store, identity = FakeTenantStore(), FakeIdentityProvider()
    store.provision_error = ProvisioningError("disk full", ErrorReason.TENANT_CREATION_FAILED)

    async def _fail(signup_request_id, reason):
        raise ConnectionError("store is down")

    store.mark_signup_failed = _fail
    result = await _pipeline(store, identity).provision(_signup())

    assert result.error == ErrorReason.TENANT_CREATION_FAILED
    assert result.signup_request_id is not None
    assert len(identity.deleted) == 1
    assert identity.users == {}


@pytest.mark.asyncio
async def test_unexpected_store_error_discards_identity():
    store, identity = FakeTenantStore(), FakeIdentityProvider()
    store.provision_error = RuntimeError("connection reset")

    result = await _pipeline(store, identity).provision(_signup())

    assert result.error == ErrorReason.TENANT_CREATION_FAILED
    assert result.message == "Failed to provision tenant"
    assert store.signups[result.signup_request_id]["status"] == "failed"
    assert len(identity.deleted) == 1


@pytest.mark.asyncio
async def test_unexpected_error_is_contained():
    store = FakeTenantStore()

    async def _explode(slug):
        raise AssertionError("bug")

    validator = SlugValidator(store)
    validator.validate = _explode
    pipeline = ProvisioningPipeline(store, FakeIdentityProvider(), validator, get_settings())

    result = await pipeline.provision(_signup())
    assert result.success is False
    assert result.error == ErrorReason.TENANT_CREATION_FAILED


# ── Against the SQL store ────────────────────────────────────


@pytest.mark.asyncio
async def test_dependent_failure_rolls_back_tenant_and_identity(session_factory):
    store = BrokenDependentsStore(session_factory)
    pipeline = _pipeline(store, LocalIdentityProvider(session_factory))

    result = await pipeline.provision(_signup())

    assert result.success is False
    assert result.error == ErrorReason.DEPENDENT_RESOURCE_FAILED
    async with session_factory() as session:
        assert (await session.execute(select(Tenant))).first() is None
        assert (await session.execute(select(User))).first() is None
        signup = await session.get(SignupRequest, result.signup_request_id)
    assert signup.status == SignupStatus.FAILED
    assert signup.failure_reason == "dependent_resource_failed"


@pytest.mark.asyncio
async def test_concurrent_signups_for_same_slug(store, session_factory):
    identity = LocalIdentityProvider(session_factory)
    pipeline = _pipeline(store, identity)

    results = await asyncio.gather(
        pipeline.provision(_signup(requested_slug="acme", contact_email="ada@acmecapital.com")),
        pipeline.provision(_signup(requested_slug="acme", contact_email="bob@acmecapital.com")),
    )

    winners = [r for r in results if r.success]
    losers = [r for r in results if not r.success]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].error == ErrorReason.RESERVED_OR_TAKEN

    async with session_factory() as session:
        tenants = (await session.execute(select(Tenant).where(Tenant.slug == "acme"))).scalars().all()
        users = (await session.execute(select(User))).scalars().all()
    assert len(tenants) == 1
    # The loser's identity was removed again
    assert len(users) == 1
