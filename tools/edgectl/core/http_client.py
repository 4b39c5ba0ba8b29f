import logging

import httpx

from .settings import EdgectlSettings

logger = logging.getLogger(__name__)


class HttpClientFactory:
    """
    HTTP Client Factory for centralized timeout, auth and SSL handling.
    """

    def __init__(self, settings: EdgectlSettings):
        self.settings = settings

    def create_api_client(self, **kwargs) -> httpx.Client:
        """
        Create an httpx.Client bound to the registry API.

        Args:
            **kwargs: Additional arguments for httpx.Client
        """
        headers = dict(kwargs.pop("headers", {}) or {})
        if self.settings.api_token:
            headers.setdefault("Authorization", f"Bearer {self.settings.api_token}")
        else:
            logger.debug("No API token configured; registry calls are unauthenticated")

        kwargs.setdefault("base_url", self.settings.api_base_url)
        return self.create_sync_client(headers=headers, **kwargs)

    def create_sync_client(self, **kwargs) -> httpx.Client:
        """
        Create an httpx.Client with configured SSL verification and timeout.
        """
        verify = kwargs.pop("verify", None)

        if verify is None:
            verify = self.settings.verify_ssl
        kwargs.setdefault("timeout", httpx.Timeout(self.settings.http_timeout_seconds))

        return httpx.Client(verify=verify, **kwargs)
