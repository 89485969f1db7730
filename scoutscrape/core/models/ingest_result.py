"""
Result models reported by the writer and the pipeline.
"""

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class IngestResult(BaseModel):
    """
    Counts from one ingestion transaction.

    Attributes:
        candidates: Records offered to the store
        inserted: Records actually written (duplicates excluded)
    """

    candidates: int = Field(0, ge=0)
    inserted: int = Field(0, ge=0)

    @computed_field
    @property
    def duplicates(self) -> int:
        return self.candidates - self.inserted


class RunOutcome(BaseModel):
    """
    What one invocation did.

    Attributes:
        mode: "live" or "replay"
        status: "ingested" or "nothing_to_do"
        snapshots: Snapshots handed to the writer
        skipped: Cached snapshots skipped for a version mismatch (replay only)
        result: Writer counts, when the writer ran
    """

    mode: Literal["live", "replay"]
    status: Literal["ingested", "nothing_to_do"]
    snapshots: int = 0
    skipped: int = 0
    result: IngestResult | None = None
