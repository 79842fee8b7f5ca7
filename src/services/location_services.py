"""
Location services delegate.

Installed on the host process during pre_create_threads(); the location
stack asks it for access-token stores.
"""

from typing import Dict

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


class AccessTokenStore:
    """In-memory map of location provider URL → access token."""

    def __init__(self) -> None:
        self._tokens: Dict[str, str] = {}

    def load_access_tokens(self) -> Dict[str, str]:
        return dict(self._tokens)

    def save_access_token(self, provider_url: str, token: str) -> None:
        self._tokens[provider_url] = token


class LocationServicesDelegate:
    """Factory of AccessTokenStore instances."""

    def __init__(self) -> None:
        self.stores_created = 0

    def create_access_token_store(self) -> AccessTokenStore:
        self.stores_created += 1
        log.debug("Access token store created")
        return AccessTokenStore()
