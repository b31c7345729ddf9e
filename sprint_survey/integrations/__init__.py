"""
Outbound integrations for sprint prioritization submissions.

Each sink receives the stored submission and reports success or failure:
- Power Automate flow (SharePoint list)
- Excel workbook through Microsoft Graph
"""

from typing import List

from ..config import Settings
from ..utils.logging import get_logger
from .base import ExternalSink, SinkConfig, SinkResult, SinkError, SinkNotConfiguredError
from .power_automate import PowerAutomateSink, PowerAutomateConfig
from .excel_graph import ExcelGraphSink, ExcelGraphConfig

logger = get_logger(__name__)


def build_sinks(settings: Settings) -> List[ExternalSink]:
    """Create the sinks whose settings are present."""

    sinks: List[ExternalSink] = []

    if settings.power_automate_url:
        sinks.append(PowerAutomateSink(PowerAutomateConfig(
            flow_url=settings.power_automate_url,
            timeout=settings.sink_timeout
        )))

    if settings.graph_access_token and settings.graph_file_id:
        try:
            sinks.append(ExcelGraphSink(ExcelGraphConfig(
                site_id=settings.graph_site_id or "",
                drive_id=settings.graph_drive_id or "",
                file_id=settings.graph_file_id,
                worksheet=settings.graph_worksheet,
                table=settings.graph_table,
                access_token=settings.graph_access_token,
                timeout=settings.sink_timeout
            )))
        except SinkNotConfiguredError as e:
            logger.warning(f"Excel Graph sink disabled: {str(e)}")

    return sinks


__all__ = [
    "ExternalSink",
    "SinkConfig",
    "SinkResult",
    "SinkError",
    "SinkNotConfiguredError",
    "PowerAutomateSink",
    "PowerAutomateConfig",
    "ExcelGraphSink",
    "ExcelGraphConfig",
    "build_sinks",
]
