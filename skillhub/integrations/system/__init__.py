"""Platform tools available to every organisation."""

from .web_search import WebSearchIntegration
from .web_page_reader import WebPageReaderIntegration
from .share_file import ShareFileIntegration, FileSigner
from .stubs import IssueReportingIntegration, MemoryManagementIntegration

__all__ = [
    "WebSearchIntegration",
    "WebPageReaderIntegration",
    "ShareFileIntegration",
    "FileSigner",
    "IssueReportingIntegration",
    "MemoryManagementIntegration",
]
