"""Storage of integration instances."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .database import DatabaseService
from ..models.instance import IntegrationInstance

logger = logging.getLogger(__name__)


class InstanceRepository(ABC):
    """Lookup and bookkeeping for integration instances."""

    @abstractmethod
    async def get(self, instance_id: int) -> Optional[IntegrationInstance]:
        """Instance by id, regardless of organisation."""

    @abstractmethod
    async def list_for_organisation(
        self,
        organisation_id: str,
        workflow_user_id: Optional[str] = None
    ) -> List[IntegrationInstance]:
        """Instances of an organisation, optionally scoped to a workflow user."""

    @abstractmethod
    async def save(self, instance: IntegrationInstance) -> IntegrationInstance:
        """Insert or replace an instance."""

    @abstractmethod
    async def update_credentials(self, instance_id: int, encrypted_credentials: Optional[str]):
        """Replace the stored credential blob."""

    @abstractmethod
    async def touch_last_accessed(self, instance_id: int, when: Optional[datetime] = None):
        """Record a successful access."""

    async def find_by_org_and_type(
        self,
        organisation_id: str,
        integration_type: str
    ) -> Optional[IntegrationInstance]:
        for instance in await self.list_for_organisation(organisation_id):
            if instance.integration_type == integration_type:
                return instance
        return None


class InMemoryInstanceRepository(InstanceRepository):
    """Process-local repository used when no database is configured."""

    def __init__(self, instances: Iterable[IntegrationInstance] = ()):
        self._instances: Dict[int, IntegrationInstance] = {i.id: i for i in instances}

    async def get(self, instance_id: int) -> Optional[IntegrationInstance]:
        return self._instances.get(instance_id)

    async def list_for_organisation(
        self,
        organisation_id: str,
        workflow_user_id: Optional[str] = None
    ) -> List[IntegrationInstance]:
        return [
            i for i in sorted(self._instances.values(), key=lambda i: i.id)
            if i.organisation_id == organisation_id
            and (workflow_user_id is None or i.workflow_user_id in (None, workflow_user_id))
        ]

    async def save(self, instance: IntegrationInstance) -> IntegrationInstance:
        self._instances[instance.id] = instance
        return instance

    async def update_credentials(self, instance_id: int, encrypted_credentials: Optional[str]):
        instance = self._instances[instance_id]
        self._instances[instance_id] = instance.model_copy(
            update={"encrypted_credentials": encrypted_credentials}
        )

    async def touch_last_accessed(self, instance_id: int, when: Optional[datetime] = None):
        instance = self._instances.get(instance_id)
        if instance is not None:
            self._instances[instance_id] = instance.model_copy(
                update={"last_accessed_at": when or datetime.now(timezone.utc)}
            )


class PostgresInstanceRepository(InstanceRepository):
    """Repository over the ``integration_configs`` table."""

    table = "integration_configs"
    columns = (
        "id, organisation_id, integration_type, name, workflow_user_id, owner_user_id, "
        "encrypted_credentials, disabled_tools, active, last_accessed_at"
    )

    def __init__(self, db: DatabaseService):
        self.db = db

    @staticmethod
    def _to_instance(row: Dict[str, Any]) -> IntegrationInstance:
        disabled = row.get("disabled_tools") or []
        if isinstance(disabled, str):
            disabled = json.loads(disabled)
        return IntegrationInstance(**{**row, "disabled_tools": disabled})

    async def get(self, instance_id: int) -> Optional[IntegrationInstance]:
        row = await self.db.fetchrow(
            f"SELECT {self.columns} FROM {self.table} WHERE id = $1",
            instance_id
        )
        return self._to_instance(row) if row else None

    async def list_for_organisation(
        self,
        organisation_id: str,
        workflow_user_id: Optional[str] = None
    ) -> List[IntegrationInstance]:
        if workflow_user_id is None:
            rows = await self.db.fetch(
                f"SELECT {self.columns} FROM {self.table} WHERE organisation_id = $1 ORDER BY id",
                organisation_id
            )
        else:
            rows = await self.db.fetch(
                f"SELECT {self.columns} FROM {self.table} "
                "WHERE organisation_id = $1 AND (workflow_user_id IS NULL OR workflow_user_id = $2) "
                "ORDER BY id",
                organisation_id,
                workflow_user_id
            )
        return [self._to_instance(row) for row in rows]

    async def find_by_org_and_type(
        self,
        organisation_id: str,
        integration_type: str
    ) -> Optional[IntegrationInstance]:
        row = await self.db.fetchrow(
            f"SELECT {self.columns} FROM {self.table} "
            "WHERE organisation_id = $1 AND integration_type = $2 ORDER BY id LIMIT 1",
            organisation_id,
            integration_type
        )
        return self._to_instance(row) if row else None

    async def save(self, instance: IntegrationInstance) -> IntegrationInstance:
        await self.db.execute(
            f"""
            INSERT INTO {self.table} ({self.columns})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            ON CONFLICT (id) DO UPDATE SET
                name = EXCLUDED.name,
                workflow_user_id = EXCLUDED.workflow_user_id,
                owner_user_id = EXCLUDED.owner_user_id,
                encrypted_credentials = EXCLUDED.encrypted_credentials,
                disabled_tools = EXCLUDED.disabled_tools,
                active = EXCLUDED.active,
                last_accessed_at = EXCLUDED.last_accessed_at
            """,
            instance.id,
            instance.organisation_id,
            instance.integration_type,
            instance.name,
            instance.workflow_user_id,
            instance.owner_user_id,
            instance.encrypted_credentials,
            json.dumps(sorted(instance.disabled_tools)),
            instance.active,
            instance.last_accessed_at
        )
        logger.info(f"Saved integration instance {instance.id} ({instance.integration_type})")
        return instance

    async def update_credentials(self, instance_id: int, encrypted_credentials: Optional[str]):
        await self.db.execute(
            f"UPDATE {self.table} SET encrypted_credentials = $2 WHERE id = $1",
            instance_id,
            encrypted_credentials
        )

    async def touch_last_accessed(self, instance_id: int, when: Optional[datetime] = None):
        await self.db.execute(
            f"UPDATE {self.table} SET last_accessed_at = $2 WHERE id = $1",
            instance_id,
            when or datetime.now(timezone.utc)
        )
