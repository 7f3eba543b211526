"""Integrations that act on tenant data with per-organisation credentials."""

from .atlassian import AtlassianIntegration
from .confluence import ConfluenceIntegration
from .jira import JiraIntegration
from .trello import TrelloIntegration

__all__ = [
    "AtlassianIntegration",
    "ConfluenceIntegration",
    "JiraIntegration",
    "TrelloIntegration",
]
