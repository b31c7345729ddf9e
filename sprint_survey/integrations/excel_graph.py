from __future__ import annotations

from typing import Dict, Any, List, Optional
import json

import httpx

from .base import ExternalSink, SinkConfig, SinkNotConfiguredError

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


class ExcelGraphConfig(SinkConfig):
    """Excel table in a SharePoint drive, reached through Microsoft Graph."""

    name: str = "excel_graph"
    site_id: str
    drive_id: str
    file_id: str
    worksheet: str = "Sheet1"
    table: str = "Table1"
    access_token: str
    base_url: str = GRAPH_BASE_URL


class ExcelGraphSink(ExternalSink[ExcelGraphConfig]):
    """Appends one table row per submission."""

    def __init__(
        self,
        config: ExcelGraphConfig,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        missing = [
            field for field in ("site_id", "drive_id", "file_id", "access_token")
            if not getattr(config, field)
        ]
        if missing:
            raise SinkNotConfiguredError(
                f"Excel Graph sink is missing: {', '.join(missing)}",
                config.name
            )
        super().__init__(config, client)

    def endpoint_url(self) -> str:
        c = self.config
        return (
            f"{c.base_url}/sites/{c.site_id}/drives/{c.drive_id}/items/{c.file_id}"
            f"/workbook/worksheets/{c.worksheet}/tables/{c.table}/rows/add"
        )

    def _get_default_headers(self) -> Dict[str, str]:
        headers = super()._get_default_headers()
        headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    def build_row(self, record: Dict[str, Any]) -> List[Any]:
        breakdown = record.get("priorityBreakdown") or {}
        return [
            record.get("email"),
            record.get("timestamp"),
            json.dumps(record.get("responses") or {}),
            breakdown.get("high", 0),
            breakdown.get("medium", 0),
            breakdown.get("low", 0),
        ]

    def build_payload(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {"values": [self.build_row(record)]}
