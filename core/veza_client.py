"""
Veza Client — Pushes the exported OAA application to Veza.

Only used when DRY_RUN=false. The oaaclient OAAClient is created on the first
push, so dry runs never need Veza credentials or a reachable Veza instance.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)


class VezaClient:
    """Pushes an atSpoke CustomApplication to a Veza provider."""

    def __init__(self, veza_url: str, veza_api_key: str):
        self.veza_url = veza_url
        self.veza_api_key = veza_api_key
        self._oaa = None

    @property
    def oaa(self):
        if self._oaa is None:
            from oaaclient.client import OAAClient
            self._oaa = OAAClient(url=self.veza_url, api_key=self.veza_api_key)
        return self._oaa

    def ensure_provider(self, provider_name: str) -> Dict:
        """Return the custom application provider, creating it on first push."""
        provider = self.oaa.get_provider(provider_name)
        if provider:
            logger.debug("Using existing provider: %s", provider_name)
            return provider
        logger.info("Creating provider: %s", provider_name)
        return self.oaa.create_provider(provider_name, "application")

    def push_application(self, app, provider_name: str, data_source_name: str) -> Dict:
        """Push the application under one data source per atSpoke org."""
        self.ensure_provider(provider_name)
        return self.oaa.push_application(
            provider_name=provider_name,
            data_source_name=data_source_name,
            application_object=app,
        )

    @staticmethod
    def generate_provider_name(name: str, prefix: str = "") -> str:
        """Veza provider names allow only [A-Za-z0-9_-]; anything else becomes "_"."""
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)
        return f"{prefix}_{safe_name}" if prefix else safe_name
