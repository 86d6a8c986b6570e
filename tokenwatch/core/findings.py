from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class FindingSeverity(str, Enum):
    UNKNOWN = "unknown"
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FindingType(str, Enum):
    UNKNOWN = "unknown"
    INFO = "info"
    SUSPICIOUS = "suspicious"
    DEGRADED = "degraded"
    EXPLOIT = "exploit"


class Finding(BaseModel):
    """
    Alert record passed from strategies to executors

    ``alert_id`` is the stable routing key downstream consumers filter on,
    ``metadata`` holds machine-readable string pairs.
    """

    name: str
    description: str
    alert_id: str
    severity: FindingSeverity = FindingSeverity.INFO
    type: FindingType = FindingType.INFO
    metadata: Dict[str, str] = Field(default_factory=dict)

    def __str__(self) -> str:
        """
        Format finding as human-readable string

        Returns:
            str: Formatted finding information
        """
        return (
            f"Finding(alert_id={self.alert_id}, severity={self.severity.value}, "
            f"name={self.name})\n{self.description}"
        )

    class Config:
        """Pydantic configuration"""

        frozen = True  # Make Finding instances immutable
