"""Credential encryption at rest."""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..config import Settings, get_settings
from ..errors import DecryptionFailedError

logger = logging.getLogger(__name__)

KDF_ITERATIONS = 100000


class CredentialCipher:
    """Encrypts credential maps into a single Fernet token and back."""

    def __init__(self, secret_key: str, salt: str = "skillhub-credentials-v1"):
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=KDF_ITERATIONS,
        )
        key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode()))
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CredentialCipher":
        settings = settings or get_settings()
        return cls(settings.encryption_key, settings.encryption_salt)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            DecryptionFailedError: the token is malformed, tampered with or
                was encrypted under another key
        """
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except (InvalidToken, binascii.Error, UnicodeError, AttributeError, TypeError) as e:
            logger.error(f"Credential decryption failed: {type(e).__name__}")
            raise DecryptionFailedError(original_error=e)

    def encrypt_credentials(self, credentials: Dict[str, Any]) -> str:
        return self.encrypt(json.dumps(credentials))

    def decrypt_credentials(self, token: str) -> Dict[str, Any]:
        """Decrypt a credential blob into its JSON object."""
        plaintext = self.decrypt(token)
        try:
            credentials = json.loads(plaintext)
        except ValueError as e:
            logger.error("Decrypted credentials are not valid JSON")
            raise DecryptionFailedError(original_error=e)

        if not isinstance(credentials, dict):
            logger.error("Decrypted credentials are not a JSON object")
            raise DecryptionFailedError()
        return credentials
