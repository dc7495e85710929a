"""Pipeline: run an ordered chain of transformations over one input.

Stages run strictly in order; each stage's output is the next stage's input.
The whole traversal runs under one outer timeout. With ``fail_fast`` (the
default) the first failing stage aborts the run with ``StageFailedError``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING

from clipflow.constants import ALGORITHMIC_PIPELINE_TIMEOUT_S, LLM_PIPELINE_TIMEOUT_S
from clipflow.errors import (
    ConfigurationError,
    EmptyPipelineError,
    PipelineCancelledError,
    PipelineTimeoutError,
    StageFailedError,
)
from clipflow.telemetry import TelemetryContext
from clipflow.transforms.base import TransformMetadata, metadata_of, require_text
from clipflow.transforms.local import (
    SmartUnwrapTransformation,
    WhitespaceStripTransformation,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from clipflow.config import Config
    from clipflow.telemetry import TelemetryContextProtocol
    from clipflow.transforms.base import Transformation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Execution policy for a pipeline run."""

    timeout_s: float = ALGORITHMIC_PIPELINE_TIMEOUT_S
    fail_fast: bool = True

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="The pipeline timeout bounds the whole run, across all stages.",
            )

    @classmethod
    def algorithmic(cls) -> PipelineConfig:
        """Local-only pipelines: short timeout."""
        return cls(timeout_s=ALGORITHMIC_PIPELINE_TIMEOUT_S)

    @classmethod
    def llm(cls) -> PipelineConfig:
        """Pipelines containing a remote call."""
        return cls(timeout_s=LLM_PIPELINE_TIMEOUT_S)

    @classmethod
    def from_config(cls, config: Config, *, fail_fast: bool = True) -> PipelineConfig:
        """Use ``config.pipeline_timeout_s`` (``CLIPFLOW_PIPELINE_TIMEOUT_S``).

        The pipeline timeout bounds the whole run, so it should exceed the
        per-call ``request_timeout_s`` of any remote stage.
        """
        return cls(
            timeout_s=config.pipeline_timeout_s or LLM_PIPELINE_TIMEOUT_S,
            fail_fast=fail_fast,
        )


@dataclass(frozen=True)
class StageResult:
    """Outcome of one successful stage."""

    unit_id: str
    unit_name: str
    output: str
    duration_s: float
    metadata: TransformMetadata | None = None


@dataclass(frozen=True)
class PipelineResult:
    output: str
    stage_results: tuple[StageResult, ...]

    @property
    def total_duration_s(self) -> float:
        """Sum of the individual stage durations."""
        return sum(r.duration_s for r in self.stage_results)

    @property
    def stage_count(self) -> int:
        return len(self.stage_results)


@dataclass(frozen=True)
class Pipeline:
    """An ordered chain of transformations with an execution policy.

    Pipelines hold no per-run state and can be executed concurrently.

    Example:
        pipeline = Pipeline([WhitespaceStripTransformation(), unit],
                            PipelineConfig.llm())
        result = await pipeline.execute(text)
        print(result.output)
    """

    stages: Sequence[Transformation]
    config: PipelineConfig = field(default_factory=PipelineConfig)
    telemetry: TelemetryContextProtocol | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stages", tuple(self.stages))

    @classmethod
    def single(
        cls, unit: Transformation, config: PipelineConfig | None = None
    ) -> Pipeline:
        return cls((unit,), config or PipelineConfig.algorithmic())

    @classmethod
    def clean_terminal_text(cls) -> Pipeline:
        """Strip shared indentation, then unwrap hard-wrapped paragraphs."""
        return cls(
            (WhitespaceStripTransformation(), SmartUnwrapTransformation()),
            PipelineConfig.algorithmic(),
        )

    @property
    def display_names(self) -> list[str]:
        return [unit.display_name for unit in self.stages]

    @property
    def provider_name(self) -> str | None:
        """Provider of the first stage that reports one, if any."""
        for unit in self.stages:
            meta = metadata_of(unit)
            if meta is not None:
                return meta.provider_name
        return None

    def __len__(self) -> int:
        return len(self.stages)

    async def execute(self, text: str) -> PipelineResult:
        """Run every stage over ``text``.

        Raises:
            EmptyInputError: ``text`` is blank (checked before anything else).
            EmptyPipelineError: There are no stages.
            PipelineTimeoutError: The run exceeded ``config.timeout_s``.
            PipelineCancelledError: The run was cancelled from outside.
            StageFailedError: A stage failed in fail-fast mode.
        """
        require_text(text)
        if not self.stages:
            raise EmptyPipelineError()

        tele = self.telemetry if self.telemetry is not None else TelemetryContext()
        seconds = int(self.config.timeout_s)
        try:
            async with asyncio.timeout(self.config.timeout_s):
                with tele("pipeline.execute", stages=len(self.stages)):
                    return await self._run_stages(text, tele)
        except TimeoutError as e:
            logger.warning("Pipeline timed out after %ss", self.config.timeout_s)
            raise PipelineTimeoutError(seconds) from e
        except PipelineCancelledError:
            raise
        except asyncio.CancelledError as e:
            logger.debug("Pipeline cancelled during a stage")
            raise PipelineCancelledError() from e

    async def _run_stages(
        self, text: str, tele: TelemetryContextProtocol
    ) -> PipelineResult:
        current = text
        results: list[StageResult] = []
        for index, unit in enumerate(self.stages):
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise PipelineCancelledError()

            start = time.perf_counter()
            try:
                with tele("stage", unit_id=unit.id, index=index):
                    output = await unit.transform(current)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self.config.fail_fast:
                    logger.debug("Stage %d (%s) failed: %s", index, unit.id, e)
                    tele.count("stage_failures")
                    raise StageFailedError(index, unit.id, e) from e
                logger.warning(
                    "Stage %d (%s) failed, continuing with previous text: %s",
                    index,
                    unit.id,
                    e,
                )
                continue

            duration = time.perf_counter() - start
            logger.debug("Stage %d (%s) finished in %.3fs", index, unit.id, duration)
            results.append(
                StageResult(
                    unit_id=unit.id,
                    unit_name=unit.display_name,
                    output=output,
                    duration_s=duration,
                    metadata=metadata_of(unit),
                )
            )
            current = output
        return PipelineResult(output=current, stage_results=tuple(results))
