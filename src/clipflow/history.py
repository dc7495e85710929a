"""History records: what a pipeline run did, packaged for an external store.

clipflow never persists anything; callers hand these records to their own
storage.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from clipflow.errors import StageFailedError
from clipflow.transforms.base import metadata_of

if TYPE_CHECKING:
    from clipflow.pipeline import Pipeline, PipelineResult


@dataclass(frozen=True)
class HistoryRecord:
    """One transformation attempt, successful or not."""

    unit_id: str
    unit_name: str
    input_text: str
    output_text: str
    duration_s: float
    success: bool
    provider_name: str | None = None
    model: str | None = None
    system_prompt: str | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def duration_ms(self) -> int:
        return max(int(self.duration_s * 1000), 0)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly mapping (timestamps as ISO 8601)."""
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


def record_success(
    pipeline: Pipeline, input_text: str, result: PipelineResult
) -> HistoryRecord:
    """Describe a successful run by its last stage."""
    if result.stage_results:
        last = result.stage_results[-1]
        unit_id, unit_name, meta = last.unit_id, last.unit_name, last.metadata
    else:
        unit_id, unit_name, meta = "pipeline", "Pipeline", None
    return HistoryRecord(
        unit_id=unit_id,
        unit_name=unit_name,
        provider_name=meta.provider_name if meta else pipeline.provider_name,
        model=meta.model if meta else None,
        system_prompt=meta.system_prompt if meta else None,
        input_text=input_text,
        output_text=result.output,
        duration_s=result.total_duration_s,
        success=True,
    )


def record_failure(
    pipeline: Pipeline, input_text: str, error: BaseException, duration_s: float
) -> HistoryRecord:
    """Describe a failed run by the stage that failed (or the first stage)."""
    stages = list(pipeline.stages)
    unit = None
    if isinstance(error, StageFailedError) and 0 <= error.stage < len(stages):
        unit = stages[error.stage]
    elif stages:
        unit = stages[0]

    meta = metadata_of(unit) if unit is not None else None
    message = str(error) or type(error).__name__
    return HistoryRecord(
        unit_id=unit.id if unit is not None else "pipeline",
        unit_name=unit.display_name if unit is not None else "Pipeline",
        provider_name=meta.provider_name if meta else None,
        model=meta.model if meta else None,
        system_prompt=meta.system_prompt if meta else None,
        input_text=input_text,
        output_text="",
        duration_s=max(duration_s, 0.0),
        success=False,
        error_message=message,
    )
