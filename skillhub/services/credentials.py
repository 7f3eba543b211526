"""Credential lifecycle for integration instances."""

import asyncio
import logging
from typing import Any, Dict, Optional

from .encryption import CredentialCipher
from .instance_store import InstanceRepository
from ..errors import CredentialValidationError, CredentialsMissingError, SkillHubError
from ..integrations.base import Integration
from ..models.instance import IntegrationInstance

logger = logging.getLogger(__name__)


class CredentialService:
    """Stores, decrypts and refreshes instance credentials."""

    def __init__(self, cipher: CredentialCipher, repository: InstanceRepository):
        self.cipher = cipher
        self.repository = repository

    async def store_credentials(
        self,
        instance: IntegrationInstance,
        integration: Integration,
        credentials: Dict[str, Any]
    ) -> IntegrationInstance:
        """Validate, encrypt and persist credentials for an instance."""
        invalid = integration.credential_errors(credentials)
        if invalid:
            raise CredentialValidationError(integration.get_type(), invalid)

        encrypted = self.cipher.encrypt_credentials(credentials)
        await self.repository.update_credentials(instance.id, encrypted)
        logger.info(f"Stored credentials for integration instance {instance.id}")
        return instance.model_copy(update={"encrypted_credentials": encrypted})

    def decrypt(self, instance: IntegrationInstance) -> Dict[str, Any]:
        if instance.encrypted_credentials is None:
            raise CredentialsMissingError(instance.id, instance.integration_type)
        return self.cipher.decrypt_credentials(instance.encrypted_credentials)

    async def refresh_if_needed(
        self,
        instance: IntegrationInstance,
        integration: Integration,
        timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """Decrypt credentials and persist them again if the adapter refreshed them.

        The adapter's ``prepare_credentials`` hook is bounded by ``timeout``.
        A failed or timed out refresh leaves the stored credentials untouched
        and returns the stale map.
        """
        credentials = self.decrypt(instance)
        try:
            prepared = await asyncio.wait_for(
                integration.prepare_credentials(dict(credentials)),
                timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Credential refresh timed out for instance {instance.id}")
            return credentials
        except SkillHubError as e:
            logger.warning(f"Credential refresh failed for instance {instance.id}: {e.message}")
            return credentials
        except Exception as e:
            logger.warning(f"Credential refresh failed for instance {instance.id}: {type(e).__name__}")
            return credentials

        if prepared != credentials:
            await self.repository.update_credentials(
                instance.id,
                self.cipher.encrypt_credentials(prepared)
            )
            logger.info(f"Persisted refreshed credentials for instance {instance.id}")
        return prepared
