"""Tests for integration instance storage."""

from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from conftest import ORG
from skillhub.errors import DatabaseError
from skillhub.models.instance import IntegrationInstance
from skillhub.services.database import DatabaseService
from skillhub.services.instance_store import InMemoryInstanceRepository, PostgresInstanceRepository

ROW = {
    "id": 1,
    "organisation_id": ORG,
    "integration_type": "jira",
    "name": "Jira",
    "workflow_user_id": None,
    "owner_user_id": "user-1",
    "encrypted_credentials": "gAAAA",
    "disabled_tools": '["jira_add_comment"]',
    "active": True,
    "last_accessed_at": None,
}


@pytest.fixture
def db():
    """Mock database service."""
    service = MagicMock(spec=DatabaseService)
    service.fetchrow = AsyncMock(return_value=dict(ROW))
    service.fetch = AsyncMock(return_value=[dict(ROW)])
    service.execute = AsyncMock(return_value="UPDATE 1")
    return service


@pytest.mark.asyncio
async def test_postgres_row_mapping(db):
    instance = await PostgresInstanceRepository(db).get(1)

    assert instance.integration_type == "jira"
    assert instance.disabled_tools == frozenset({"jira_add_comment"})
    assert instance.is_tool_disabled("jira_add_comment")
    assert instance.has_credentials


@pytest.mark.asyncio
async def test_postgres_missing_row(db):
    db.fetchrow.return_value = None

    assert await PostgresInstanceRepository(db).get(99) is None


@pytest.mark.asyncio
async def test_postgres_workflow_scoped_listing(db):
    await PostgresInstanceRepository(db).list_for_organisation(ORG, "wf-1")

    query, *args = db.fetch.await_args.args
    assert "workflow_user_id IS NULL OR workflow_user_id = $2" in query
    assert args == [ORG, "wf-1"]


@pytest.mark.asyncio
async def test_postgres_update_credentials(db):
    await PostgresInstanceRepository(db).update_credentials(1, "gAAAB")

    db.execute.assert_awaited_once()
    assert db.execute.await_args.args[1:] == (1, "gAAAB")


@pytest.mark.asyncio
async def test_database_errors_are_wrapped():
    pool = MagicMock()
    pool.fetch = AsyncMock(side_effect=asyncpg.PostgresError("relation does not exist"))

    with pytest.raises(DatabaseError) as exc_info:
        await DatabaseService(pool).fetch("SELECT 1")

    assert exc_info.value.operation == "fetch"


@pytest.mark.asyncio
async def test_uninitialised_pool():
    with pytest.raises(DatabaseError):
        await DatabaseService().execute("SELECT 1")


@pytest.mark.asyncio
async def test_in_memory_touch_and_lookup():
    repository = InMemoryInstanceRepository([
        IntegrationInstance(id=2, organisation_id=ORG, integration_type="trello"),
        IntegrationInstance(id=1, organisation_id=ORG, integration_type="jira", workflow_user_id="wf-1"),
    ])

    await repository.touch_last_accessed(1)

    assert (await repository.get(1)).last_accessed_at is not None
    assert (await repository.find_by_org_and_type(ORG, "trello")).id == 2
    assert [i.id for i in await repository.list_for_organisation(ORG, "wf-2")] == [2]
