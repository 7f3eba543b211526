"""Jira Cloud integration."""

from typing import Any, Dict, List, Optional

from .atlassian import AtlassianIntegration
from ..base import tool
from ..schema import ParameterSpec, ToolDefinition

ISSUE_KEY = ParameterSpec(
    name="issueKey",
    type="string",
    required=True,
    description="Issue key (e.g., PROJ-123)",
)


def adf_text(text: str) -> Dict[str, Any]:
    """Plain text as an Atlassian Document Format body."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


class JiraIntegration(AtlassianIntegration):
    type = "jira"
    name = "Jira"
    product = "jira"
    prompt_template = "jira.xml.j2"
    setup_instructions = (
        "API token: create a token at https://id.atlassian.com/manage-profile/security/api-tokens "
        "and enter your Jira URL, email and the token. "
        "OAuth 2.0: save the configuration, then connect with Atlassian and choose your Jira site."
    )

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="jira_search",
                description=(
                    "Search for Jira issues using JQL (Jira Query Language). Returns: Object with "
                    "startAt, maxResults, total, and issues array. Each issue contains: id, key, "
                    "fields (including summary, status.name, assignee.displayName, priority.name)"
                ),
                parameters=(
                    ParameterSpec(name="jql", type="string", required=True, description="JQL query string"),
                    ParameterSpec(
                        name="maxResults",
                        type="integer",
                        description="Maximum number of results (default: 50)",
                    ),
                ),
            ),
            ToolDefinition(
                name="jira_get_issue",
                description=(
                    "Get detailed information about a specific Jira issue. Returns: Issue object with "
                    "id, key and fields containing summary, description, status, assignee, priority, "
                    "project, reporter, created, updated and comments"
                ),
                parameters=(ISSUE_KEY,),
            ),
            ToolDefinition(
                name="jira_add_comment",
                description="Add a comment to a Jira issue. Returns: Comment object with id, author, body, created",
                parameters=(
                    ISSUE_KEY,
                    ParameterSpec(
                        name="comment",
                        type="string",
                        required=True,
                        description="The comment text to add to the issue",
                    ),
                ),
            ),
            ToolDefinition(
                name="jira_get_available_transitions",
                description=(
                    "Get available status transitions for a Jira issue. Use this to find out which "
                    "status changes are possible for an issue based on the workflow. Returns: Object "
                    "with transitions array; each transition contains id, name and the target status"
                ),
                parameters=(ISSUE_KEY,),
            ),
            ToolDefinition(
                name="jira_transition_issue",
                description=(
                    "Change the status of a Jira issue by executing a workflow transition. Always call "
                    "jira_get_available_transitions first to get valid transition IDs."
                ),
                parameters=(
                    ISSUE_KEY,
                    ParameterSpec(
                        name="transitionId",
                        type="string",
                        required=True,
                        description="Transition ID from jira_get_available_transitions",
                    ),
                    ParameterSpec(
                        name="comment",
                        type="string",
                        description="Optional comment to add when transitioning the issue",
                    ),
                ),
            ),
            ToolDefinition(
                name="jira_get_myself",
                description=(
                    "Get the account of the authenticated user. Returns: accountId, displayName, "
                    "emailAddress, timeZone. Use accountId to filter issues by assignee."
                ),
            ),
        ]

    @tool("jira_search")
    async def search(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(
                "/rest/api/3/search",
                params={"jql": parameters["jql"], "maxResults": parameters.get("maxResults") or 50},
            )

    @tool("jira_get_issue")
    async def get_issue(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(f"/rest/api/3/issue/{parameters['issueKey']}")

    @tool("jira_add_comment")
    async def add_comment(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.post(
                f"/rest/api/3/issue/{parameters['issueKey']}/comment",
                json={"body": adf_text(parameters["comment"])},
            )

    @tool("jira_get_available_transitions")
    async def get_available_transitions(
        self,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get(f"/rest/api/3/issue/{parameters['issueKey']}/transitions")

    @tool("jira_transition_issue")
    async def transition_issue(
        self,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        issue_key = parameters["issueKey"]
        payload: Dict[str, Any] = {"transition": {"id": str(parameters["transitionId"])}}
        if parameters.get("comment"):
            payload["update"] = {"comment": [{"add": {"body": adf_text(parameters["comment"])}}]}

        async with self.client(credentials) as client:
            await client.post(f"/rest/api/3/issue/{issue_key}/transitions", json=payload)
        return {
            "success": True,
            "issueKey": issue_key,
            "transitionId": str(parameters["transitionId"]),
        }

    @tool("jira_get_myself")
    async def get_myself(self, parameters: Dict[str, Any], credentials: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        async with self.client(credentials) as client:
            return await client.get("/rest/api/3/myself")
