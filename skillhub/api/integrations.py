"""API endpoints consumed by the agent engine."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, Response

from ..dependencies import (
    SkillHubServices,
    get_dispatcher,
    get_exporter,
    get_registry,
    get_services,
    get_tool_provider,
    verify_service_credentials,
)
from ..errors import UnknownIntegrationTypeError
from ..integrations.base import PersonalizedIntegration
from ..integrations.export import FORMATS, CatalogExporter
from ..integrations.registry import CATEGORIES, IntegrationRegistry
from ..integrations.system.share_file import ShareFileIntegration
from ..models.instance import ExecuteToolRequest, ExecuteToolResponse, ToolListResponse
from ..services.dispatcher import ToolDispatcher
from ..services.tool_provider import ToolFilterCriteria, ToolProviderService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/integrations",
    tags=["integrations"],
    dependencies=[Depends(verify_service_credentials)],
)

files_router = APIRouter(tags=["files"])


@router.get("")
async def list_integrations(registry: IntegrationRegistry = Depends(get_registry)) -> List[Dict[str, Any]]:
    """Metadata of every registered integration, including credential fields."""
    return [integration.describe() for integration in registry]


@router.get("/catalog")
async def export_catalog(
    filter: str = Query("all", description="Category: all, system or user"),
    format: str = Query("xml", description="Document format: xml or json"),
    registry: IntegrationRegistry = Depends(get_registry),
    exporter: CatalogExporter = Depends(get_exporter)
):
    """Export the tool catalog."""
    if filter not in CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Invalid filter. Use: {', '.join(CATEGORIES)}")
    if format not in FORMATS:
        raise HTTPException(status_code=400, detail=f"Invalid format. Use: {', '.join(FORMATS)}")

    document = exporter.render(registry.select(filter), format)
    media_type = "application/xml" if format == "xml" else "application/json"
    return Response(content=document, media_type=media_type)


@router.get("/{organisation_id}/tools", response_model=ToolListResponse)
async def list_tools(
    organisation_id: str,
    workflow_user_id: Optional[str] = None,
    tool_type: Optional[str] = Query(None, description="Comma separated integration types, e.g. system,jira"),
    provider: ToolProviderService = Depends(get_tool_provider)
):
    """Tools the organisation can call, in function-calling format."""
    criteria = ToolFilterCriteria.from_csv(workflow_user_id, tool_type)
    tools = await provider.get_tools_for_organisation(organisation_id, criteria)
    return ToolListResponse(tools=tools)


@router.post("/{organisation_id}/execute", response_model=ExecuteToolResponse)
async def execute_tool(
    organisation_id: str,
    request: ExecuteToolRequest,
    dispatcher: ToolDispatcher = Depends(get_dispatcher)
):
    """Execute a tool for an organisation."""
    logger.info(
        f"Tool execution requested for organisation {organisation_id}: "
        f"{request.tool_id or request.tool_name}"
    )

    if request.integration_instance_id is not None and request.tool_name:
        result = await dispatcher.dispatch(
            organisation_id,
            request.integration_instance_id,
            request.tool_name,
            request.parameters,
            request.workflow_user_id
        )
    elif request.tool_id:
        result = await dispatcher.execute_tool_id(
            organisation_id,
            request.tool_id,
            request.parameters,
            request.workflow_user_id
        )
    else:
        result = await dispatcher.dispatch_platform(
            organisation_id,
            request.tool_name,
            request.parameters,
            workflow_user_id=request.workflow_user_id
        )

    return ExecuteToolResponse(result=result)


@router.get("/{integration_type}/system-prompt")
async def get_system_prompt(
    integration_type: str,
    registry: IntegrationRegistry = Depends(get_registry)
) -> Dict[str, Any]:
    """Agent system prompt of a personalized integration."""
    integration = registry.get(integration_type)
    if not isinstance(integration, PersonalizedIntegration):
        raise UnknownIntegrationTypeError(integration_type)
    return {"type": integration_type, "system_prompt": integration.get_system_prompt()}


@files_router.get("/files/{organisation_id}/{file_name}")
async def download_shared_file(
    organisation_id: str,
    file_name: str,
    expires: int,
    signature: str,
    services: SkillHubServices = Depends(get_services)
):
    """Serve a file shared through a signed link."""
    integration = services.registry.get(ShareFileIntegration.type)
    resolved = None
    if isinstance(integration, ShareFileIntegration):
        resolved = integration.resolve(organisation_id, file_name, expires, signature)
    if resolved is None:
        raise HTTPException(status_code=404, detail="File not found or link expired")

    path, content_type = resolved
    return FileResponse(path, media_type=content_type)
