"""File sharing with signed, expiring download links."""

import asyncio
import base64
import binascii
import hashlib
import hmac
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone

from ..base import PlatformIntegration, tool
from ..schema import ParameterSpec, ToolDefinition
from ...errors import InvalidParametersError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/vnd.ms-powerpoint": "ppt",
    "text/csv": "csv",
    "text/plain": "txt",
    "application/json": "json",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/zip": "zip",
}

_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9._-]+$")


class FileSigner:
    """HMAC signatures for shared file links."""

    def __init__(self, secret: str):
        self._secret = secret.encode()

    def sign(self, key: str, expires: int) -> str:
        message = f"{key}:{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify(self, key: str, expires: int, signature: str, now: Optional[float] = None) -> bool:
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(self.sign(key, expires), signature)


def storage_key(organisation_id: str, file_name: str) -> str:
    """Storage key of a shared file, rejecting path traversal."""
    for segment in (organisation_id, file_name):
        if not _SAFE_SEGMENT.match(segment) or segment in (".", ".."):
            raise ValueError(f"Invalid path segment: {segment!r}")
    return f"{organisation_id}/{file_name}"


def organisation_segment(organisation_id: str) -> str:
    """Directory name for an organisation; ids unsafe as a path segment are hashed."""
    if _SAFE_SEGMENT.match(organisation_id) and organisation_id not in (".", ".."):
        return organisation_id
    return hashlib.sha256(organisation_id.encode()).hexdigest()


class ShareFileIntegration(PlatformIntegration):
    type = "system.share_file"
    name = "Standard"

    def __init__(self, storage_dir: str, app_url: str, secret: str, ttl_seconds: int = 86400):
        self.storage_dir = Path(storage_dir)
        self.app_url = app_url.rstrip("/")
        self.signer = FileSigner(secret)
        self.ttl_seconds = ttl_seconds
        super().__init__()

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="share_file",
                description="Upload and share a file. Returns a signed URL that can be used to access the file.",
                parameters=(
                    ParameterSpec(
                        name="binaryData",
                        type="string",
                        required=True,
                        description="Base64 encoded file content",
                    ),
                    ParameterSpec(
                        name="fileName",
                        type="string",
                        description="Original file name (optional, for reference only)",
                    ),
                    ParameterSpec(
                        name="contentType",
                        type="string",
                        description="MIME type of the file",
                    ),
                ),
            )
        ]

    def path_for(self, key: str) -> Path:
        return self.storage_dir / key

    def signed_url(self, key: str, expires: int) -> str:
        return f"{self.app_url}/files/{key}?expires={expires}&signature={self.signer.sign(key, expires)}"

    def resolve(self, organisation_id: str, file_name: str, expires: int, signature: str) -> Optional[Tuple[Path, str]]:
        """Stored path and content type of a validly signed link, else None."""
        try:
            key = storage_key(organisation_id, file_name)
        except ValueError:
            return None
        if not self.signer.verify(key, expires, signature):
            return None
        path = self.path_for(key)
        if not path.is_file():
            return None
        extension = path.suffix.lstrip(".")
        content_type = next((mime for mime, ext in EXTENSIONS.items() if ext == extension), "application/octet-stream")
        return path, content_type

    @tool("share_file")
    async def share_file(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        content_type = parameters.get("contentType") or "application/octet-stream"
        organisation_id = str(parameters.get("organisationId") or "shared")

        try:
            data = base64.b64decode(parameters["binaryData"], validate=True)
        except (binascii.Error, ValueError):
            raise InvalidParametersError("share_file", ["binaryData"])

        file_id = str(uuid.uuid4())
        file_name = f"{file_id}.{EXTENSIONS.get(content_type, 'bin')}"
        key = storage_key(organisation_segment(organisation_id), file_name)
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, data)

        expires = int(time.time()) + self.ttl_seconds
        logger.info(f"File shared for organisation {organisation_id}: {file_id} ({len(data)} bytes)")
        return {
            "url": self.signed_url(key, expires),
            "contentType": content_type,
            "fileId": file_id,
            "expiresAt": datetime.fromtimestamp(expires, timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        }

    @staticmethod
    def _write(path: Path, data: bytes):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
