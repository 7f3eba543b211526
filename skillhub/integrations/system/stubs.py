"""Platform tools whose effect lives in the agent engine.

The engine acts on the acknowledgement; the registry only has to expose the
tool and confirm the call.
"""

from typing import Any, Dict, List

from ..base import PlatformIntegration, tool
from ..schema import ToolDefinition


class MemoryManagementIntegration(PlatformIntegration):
    type = "system.clear_memory_tool"
    name = "Memory Management"

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="clear_memory_tool",
                description="Use this tool to clear the conversation memory when requested by the user.",
            )
        ]

    @tool("clear_memory_tool")
    async def clear_memory(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        return {"success": True, "message": "Tool execution simulated - clear_memory_tool"}


class IssueReportingIntegration(PlatformIntegration):
    type = "system.report_issue_tool"
    name = "Issue Reporting"

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="report_issue_tool",
                description="Use this tool to report issues or problems encountered by the user.",
            )
        ]

    @tool("report_issue_tool")
    async def report_issue(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        return {"success": True, "message": "Tool execution simulated - report_issue_tool"}
