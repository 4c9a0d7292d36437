"""
Health reporting types shared by the database handle and the plugin.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class HealthStatus(str, Enum):
    """Component health status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""
    status: HealthStatus
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def healthy(cls, message: str = "OK", **details: Any) -> "HealthCheckResult":
        """Create a healthy result."""
        return cls(status=HealthStatus.HEALTHY, message=message, details=details)

    @classmethod
    def degraded(cls, message: str, **details: Any) -> "HealthCheckResult":
        """Create a degraded result."""
        return cls(status=HealthStatus.DEGRADED, message=message, details=details)

    @classmethod
    def unhealthy(cls, message: str, **details: Any) -> "HealthCheckResult":
        """Create an unhealthy result."""
        return cls(status=HealthStatus.UNHEALTHY, message=message, details=details)

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


@runtime_checkable
class HealthCheckable(Protocol):
    """Protocol for components that can report their health."""

    async def health_check(self) -> HealthCheckResult:
        """Check component health."""
        ...
