"""clipflow: rewrite copied text through a chain of local and LLM transformations.

Public API:
    - Pipeline / PipelineConfig: ordered, fail-fast execution of units
    - LLMTransformation: a unit backed by a remote language model
    - WhitespaceStripTransformation, SmartUnwrapTransformation: local units
    - make_client / ProviderCredentials: build provider clients
    - resolve_model: pick the model for a provider (override, config, fallback)
    - TransformationRegistry: lookup of units by id
"""

from __future__ import annotations

import logging

from clipflow.config import Config, ProviderCredentials
from clipflow.errors import (
    AuthenticationError,
    ClipflowError,
    ConfigurationError,
    ContentTooLargeError,
    EmptyInputError,
    EmptyPipelineError,
    NetworkError,
    PipelineCancelledError,
    PipelineError,
    PipelineTimeoutError,
    ProcessingError,
    ProviderError,
    RateLimitError,
    StageFailedError,
    TransformError,
    TransformTimeoutError,
)
from clipflow.history import HistoryRecord, record_failure, record_success
from clipflow.llm import LLMTransformation
from clipflow.model_resolver import ModelResolution, ModelSource, resolve_model
from clipflow.pipeline import Pipeline, PipelineConfig, PipelineResult, StageResult
from clipflow.providers import ProviderClient, ProviderKind, make_client
from clipflow.registry import TransformationCategory, TransformationRegistry
from clipflow.transforms import (
    CodeDetector,
    IdentityTransformation,
    SmartUnwrapTransformation,
    Transformation,
    TransformMetadata,
    WhitespaceStripTransformation,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("clipflow")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("clipflow").addHandler(logging.NullHandler())

__all__ = [
    "AuthenticationError",
    "ClipflowError",
    "CodeDetector",
    "Config",
    "ConfigurationError",
    "ContentTooLargeError",
    "EmptyInputError",
    "EmptyPipelineError",
    "HistoryRecord",
    "IdentityTransformation",
    "LLMTransformation",
    "make_client",
    "ModelResolution",
    "ModelSource",
    "NetworkError",
    "Pipeline",
    "PipelineCancelledError",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "PipelineTimeoutError",
    "ProcessingError",
    "ProviderClient",
    "ProviderCredentials",
    "ProviderError",
    "ProviderKind",
    "RateLimitError",
    "record_failure",
    "record_success",
    "resolve_model",
    "SmartUnwrapTransformation",
    "StageFailedError",
    "StageResult",
    "Transformation",
    "TransformationCategory",
    "TransformationRegistry",
    "TransformError",
    "TransformMetadata",
    "TransformTimeoutError",
    "WhitespaceStripTransformation",
]
