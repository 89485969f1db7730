"""
Snapshot - one payload retrieved from the Scout feed.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .hazard_record import HazardRecord


class Signature(BaseModel):
    """Provenance block of a Scout response."""

    source: str = ""
    version: str = ""


class SnapshotEnvelope(BaseModel):
    """
    Structural shape of a Scout response before field decoding.

    Record objects are kept raw here; their fields are decoded one by one
    so nullable tokens keep their null-versus-zero meaning.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "count": "1",
                "signature": {"source": "NASA/JPL Scout API", "version": "1.2"},
                "data": [
                    {
                        "objectName": "2025 AB",
                        "lastRun": "2025-01-01 00:00",
                        "rating": None,
                        "caDist": "0.5",
                    }
                ],
            }
        },
    )

    count: str | None = None
    signature: Signature = Field(default_factory=Signature)
    data: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_is_empty(cls, v):
        """The feed sends null rather than [] when nothing is listed."""
        return [] if v is None else v


@dataclass(frozen=True)
class Snapshot:
    """
    Decoded, immutable snapshot.

    Attributes:
        version: Declared schema version (signature.version)
        source: Declared source (signature.source)
        count: Record count as sent by the feed (a string)
        records: Decoded records in feed order
        origin: Cache file name or URL the payload came from
    """

    version: str
    source: str = ""
    count: str | None = None
    records: tuple[HazardRecord, ...] = field(default_factory=tuple)
    origin: str | None = None

    def __len__(self) -> int:
        return len(self.records)
