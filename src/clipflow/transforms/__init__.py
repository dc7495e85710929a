"""Text processing units."""

from .base import (
    ProvidesMetadata,
    Transformation,
    TransformMetadata,
    metadata_of,
    require_text,
)
from .detection import CodeDetector
from .local import (
    IdentityTransformation,
    SmartUnwrapConfig,
    SmartUnwrapTransformation,
    WhitespaceStripConfig,
    WhitespaceStripTransformation,
)

__all__ = [
    "CodeDetector",
    "IdentityTransformation",
    "ProvidesMetadata",
    "SmartUnwrapConfig",
    "SmartUnwrapTransformation",
    "TransformMetadata",
    "Transformation",
    "WhitespaceStripConfig",
    "WhitespaceStripTransformation",
    "metadata_of",
    "require_text",
]
