from __future__ import annotations

from typing import Dict, Any, Optional
from datetime import datetime, timezone

import httpx

from .base import ExternalSink, SinkConfig, SinkNotConfiguredError


class PowerAutomateConfig(SinkConfig):
    """Power Automate flow that writes submissions to a SharePoint list."""

    name: str = "power_automate"
    flow_url: str


class PowerAutomateSink(ExternalSink[PowerAutomateConfig]):
    """Posts each submission to an HTTP-triggered Power Automate flow."""

    def __init__(
        self,
        config: PowerAutomateConfig,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        if not config.flow_url:
            raise SinkNotConfiguredError("Power Automate flow URL is not configured", config.name)
        super().__init__(config, client)

    def endpoint_url(self) -> str:
        return self.config.flow_url

    def build_payload(self, record: Dict[str, Any]) -> Dict[str, Any]:
        metadata = record.get("metadata") or {}
        return {
            "email": record.get("email"),
            "submissionDate": record.get("submissionDate") or record.get("timestamp"),
            "selectedItems": record.get("selectedItems") or [],
            "totalHours": record.get("totalHours") or 0,
            "itemsWithTBD": record.get("itemsWithTBD") or 0,
            "capacityUsed": record.get("capacityUsed") or 0,
            "responses": record.get("responses") or {},
            "userAgent": metadata.get("userAgent", "Unknown"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
