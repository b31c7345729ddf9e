from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Generic, TypeVar
from datetime import datetime, timezone
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field

# Type variables
ConfigType = TypeVar('ConfigType', bound='SinkConfig')

# Base configuration
class SinkConfig(BaseModel):
    """Base configuration for all external sinks."""

    model_config = ConfigDict(extra="forbid")

    name: str
    enabled: bool = True
    timeout: int = Field(default=30, ge=1, le=300)

# Data models
class SinkResult(BaseModel):
    """Outcome of delivering one submission to a sink."""

    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None
    data: Optional[Dict[str, Any]] = None

class SinkMetrics(BaseModel):
    """Sink delivery metrics."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    last_error: Optional[str] = None
    last_success: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

# Custom exceptions
class SinkError(Exception):
    """Base exception for sink delivery errors."""

    def __init__(
        self,
        message: str,
        sink_name: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.sink_name = sink_name
        self.status_code = status_code
        self.response_text = response_text
        self.timestamp = datetime.now(timezone.utc)

class SinkNotConfiguredError(SinkError):
    """Required sink settings are missing."""
    pass

class NetworkError(SinkError):
    """Network/connectivity error."""
    pass

# Base sink class
class ExternalSink(ABC, Generic[ConfigType]):
    """
    Abstract base class for downstream destinations of submissions.

    Subclasses describe where and what to send; this class owns the HTTP
    client, error translation and metrics. Each delivery is a single attempt:
    failures are reported in the returned SinkResult, never raised.
    """

    def __init__(
        self,
        config: ConfigType,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.config = config
        self.metrics = SinkMetrics()
        self._client = client
        self._owns_client = client is None
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    def endpoint_url(self) -> str:
        """URL the payload is posted to."""
        pass

    @abstractmethod
    def build_payload(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Shape a stored submission (wire dictionary) for this sink."""
        pass

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        return {
            "Accept": "application/json",
            "Content-Type": "application/json"
        }

    async def send(self, record: Dict[str, Any]) -> SinkResult:
        """Deliver one submission."""

        if not self.config.enabled:
            return SinkResult(success=False, error=f"{self.name} sink is disabled")

        try:
            response = await self._post(self.build_payload(record))
        except SinkError as e:
            self._update_metrics_failure(str(e))
            self._logger.warning(f"Delivery to {self.name} failed: {str(e)}")
            return SinkResult(success=False, error=str(e), status_code=e.status_code)

        self._update_metrics_success()
        return SinkResult(
            success=True,
            status_code=response.status_code,
            data=self._safe_json(response)
        )

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        url = self.endpoint_url()
        client = self._get_client()

        try:
            response = await client.post(url, json=payload, headers=self._get_default_headers())
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timeout after {self.config.timeout}s",
                self.name
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {str(e)}", self.name) from e

        if not response.is_success:
            raise SinkError(
                f"HTTP {response.status_code}: {response.text}",
                self.name,
                response.status_code,
                response.text
            )
        return response

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    def _safe_json(self, response: httpx.Response) -> Optional[Dict[str, Any]]:
        """Safely parse JSON response."""
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def _update_metrics_success(self) -> None:
        self.metrics.total_requests += 1
        self.metrics.successful_requests += 1
        self.metrics.last_success = datetime.now(timezone.utc)

    def _update_metrics_failure(self, error: str) -> None:
        self.metrics.total_requests += 1
        self.metrics.failed_requests += 1
        self.metrics.last_error = error

    async def close(self) -> None:
        """Close the HTTP client if this sink created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None


__all__ = [
    "ExternalSink",
    "SinkConfig",
    "SinkResult",
    "SinkMetrics",
    "SinkError",
    "SinkNotConfiguredError",
    "NetworkError",
]
