"""Project-wide defaults for clipflow."""

# ==============================================================================
# Remote calls
# ==============================================================================

# Logical per-call timeout enforced by LLMTransformation's timer race.
DEFAULT_REQUEST_TIMEOUT_S = 30.0

# The HTTP client's own timeout is stretched past the logical one so the
# adapter's race is always the timeout callers observe.
TRANSPORT_TIMEOUT_FACTOR = 1.5

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096

# ==============================================================================
# Content limits
# ==============================================================================

DEFAULT_CONTENT_LIMIT_BYTES = 200_000

# ==============================================================================
# Pipeline
# ==============================================================================

ALGORITHMIC_PIPELINE_TIMEOUT_S = 5.0
LLM_PIPELINE_TIMEOUT_S = 30.0

# ==============================================================================
# Provider defaults
# ==============================================================================

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"
DEFAULT_BEDROCK_REGION = "us-east-1"
DEFAULT_OPENROUTER_REFERER = "https://github.com/clipflow/clipflow"
DEFAULT_OPENROUTER_TITLE = "clipflow"
