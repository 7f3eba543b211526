"""Tests for the credential lifecycle service."""

import asyncio

import pytest

from conftest import FAKE_CREDENTIALS, FakeIntegration
from skillhub.errors import AuthenticationError, CredentialValidationError, CredentialsMissingError


class RefreshingIntegration(FakeIntegration):
    async def prepare_credentials(self, credentials):
        return {**credentials, "token": "fresh-token-value"}


class FailingRefresh(FakeIntegration):
    async def prepare_credentials(self, credentials):
        raise AuthenticationError("refresh rejected", service="fake")


class CrashingRefresh(FakeIntegration):
    async def prepare_credentials(self, credentials):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


class SlowRefresh(FakeIntegration):
    async def prepare_credentials(self, credentials):
        await asyncio.sleep(5)
        return {**credentials, "token": "too-late-token"}


@pytest.mark.asyncio
async def test_store_credentials_encrypts_and_persists(credential_service, repository, cipher, fake_integration):
    instance = await repository.get(3)

    updated = await credential_service.store_credentials(instance, fake_integration, FAKE_CREDENTIALS)

    stored = await repository.get(3)
    assert stored.encrypted_credentials == updated.encrypted_credentials
    assert "super-secret-token" not in stored.encrypted_credentials
    assert cipher.decrypt_credentials(stored.encrypted_credentials) == FAKE_CREDENTIALS


@pytest.mark.asyncio
async def test_store_credentials_rejects_invalid_fields(credential_service, repository, fake_integration):
    instance = await repository.get(3)

    with pytest.raises(CredentialValidationError) as exc_info:
        await credential_service.store_credentials(instance, fake_integration, {"url": "ftp://x", "token": ""})

    assert exc_info.value.fields == ["url", "token"]
    assert (await repository.get(3)).encrypted_credentials is None


@pytest.mark.asyncio
async def test_decrypt_without_credentials(credential_service, repository):
    with pytest.raises(CredentialsMissingError):
        credential_service.decrypt(await repository.get(3))


@pytest.mark.asyncio
async def test_unchanged_credentials_are_not_rewritten(credential_service, repository, fake_integration):
    instance = await repository.get(1)

    credentials = await credential_service.refresh_if_needed(instance, fake_integration)

    assert credentials == FAKE_CREDENTIALS
    assert (await repository.get(1)).encrypted_credentials == instance.encrypted_credentials


@pytest.mark.asyncio
async def test_refreshed_credentials_are_persisted(credential_service, repository, cipher):
    instance = await repository.get(1)

    credentials = await credential_service.refresh_if_needed(instance, RefreshingIntegration())

    assert credentials["token"] == "fresh-token-value"
    stored = await repository.get(1)
    assert cipher.decrypt_credentials(stored.encrypted_credentials)["token"] == "fresh-token-value"


@pytest.mark.asyncio
async def test_failed_refresh_keeps_stale_credentials(credential_service, repository):
    instance = await repository.get(1)

    credentials = await credential_service.refresh_if_needed(instance, FailingRefresh())

    assert credentials == FAKE_CREDENTIALS
    assert (await repository.get(1)).encrypted_credentials == instance.encrypted_credentials


@pytest.mark.asyncio
async def test_slow_refresh_times_out_with_stale_credentials(credential_service, repository):
    instance = await repository.get(1)

    credentials = await credential_service.refresh_if_needed(instance, SlowRefresh(), timeout=0.05)

    assert credentials == FAKE_CREDENTIALS
    assert (await repository.get(1)).encrypted_credentials == instance.encrypted_credentials


@pytest.mark.asyncio
async def test_crashing_refresh_keeps_stale_credentials(credential_service, repository):
    instance = await repository.get(1)

    credentials = await credential_service.refresh_if_needed(instance, CrashingRefresh())

    assert credentials == FAKE_CREDENTIALS
    assert (await repository.get(1)).encrypted_credentials == instance.encrypted_credentials
