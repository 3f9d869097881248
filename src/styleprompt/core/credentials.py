"""
Persistence of the Gemini API key in the OS keychain.

The key is one keychain entry (service ``config.keyring_service``, user
``gemini-api-key``), read once at startup and written back on every change.
It is not validated. Storage and encryption are up to the keyring backend.
"""

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from styleprompt.core.config import DEFAULT_KEYRING_SERVICE, Config, get_config
from styleprompt.logging_config import get_logger

logger = get_logger(__name__)

CREDENTIAL_KEY = "gemini-api-key"


class CredentialStore:
    """Keychain entry holding one credential string."""

    def __init__(self, service: str = DEFAULT_KEYRING_SERVICE, username: str = CREDENTIAL_KEY) -> None:
        self.service = service
        self.username = username

    def load(self) -> str:
        """Return the stored credential, or "" when nothing is stored or the keychain is unusable."""
        try:
            value = keyring.get_password(self.service, self.username)
        except KeyringError as e:
            logger.warning("Could not read API key from keychain service=%s: %s", self.service, e)
            return ""
        return value or ""

    def save(self, value: str) -> None:
        """
        Persist the credential, replacing any previous value. An empty value removes the entry.

        Raises:
            KeyringError: If the keychain cannot be written (e.g. no backend available)
        """
        if value:
            keyring.set_password(self.service, self.username, value)
        else:
            try:
                keyring.delete_password(self.service, self.username)
            except PasswordDeleteError:
                logger.debug("No stored API key to remove service=%s", self.service)
        logger.debug("Saved credential service=%s (set=%s)", self.service, bool(value))


def get_credential_store(config: Config | None = None) -> CredentialStore:
    """Return a store for the configured keychain service."""
    cfg = config or get_config()
    return CredentialStore(cfg.keyring_service)


def load_initial_credential(config: Config | None = None) -> str:
    """
    Credential to show at startup: the stored value, else GEMINI_API_KEY from config.
    """
    cfg = config or get_config()
    stored = get_credential_store(cfg).load()
    return stored or cfg.gemini_api_key
