# -*- coding: utf-8 -*-

# Environment
API_KEY_ENV = "NEOAPI_API_KEY"
API_URL_ENV = "NEOAPI_API_URL"

DEFAULT_API_URL = "https://api.neoapi.ai"

# Endpoints, relative to the configured API URL
SAVE_ENDPOINT = "/save"
ANALYZE_ENDPOINT = "/analyze"

# Client defaults
DEFAULT_BATCH_SIZE = 10
DEFAULT_FLUSH_INTERVAL = 5.0
DEFAULT_MAX_BATCH_SIZE = 100
DEFAULT_MIN_BATCH_SIZE = 5
DEFAULT_MAX_FLUSH_INTERVAL = 10.0
DEFAULT_MIN_FLUSH_INTERVAL = 1.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_CHECK_FREQUENCY = 1
DEFAULT_ADJUSTMENT_INTERVAL = 2.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# Adaptive tuning
BATCH_SIZE_STEP = 5
FLUSH_INTERVAL_STEP = 0.5
GROW_BATCH_RATIO = 1.5
SHRINK_BATCH_RATIO = 0.5
SPEED_UP_FLUSH_RATIO = 2.0

# Retry backoff: attempt n waits min(2 ** n, 30) seconds before attempt n + 1
BACKOFF_MULTIPLIER = 2
MAX_BACKOFF_SECONDS = 30

# Event defaults used when an arbitrary result is turned into an event
DEFAULT_MODEL = "unknown"
DEFAULT_PROJECT = "default_project"
DEFAULT_GROUP = "default_group"

# Exit codes
EXIT_CODE_OK = 0
EXIT_CODE_FAILURE = 1
EXIT_CODE_INVALID_CONFIG = 2
EXIT_CODE_INVALID_INPUT = 3

# CLI
CLI_MAIN_HELP = "Track LLM outputs with the neoapi collection API."
CLI_DEBUG_HELP = "Enable debug logging."
CLI_API_KEY_HELP = "API key. Defaults to the NEOAPI_API_KEY environment variable."
CLI_API_URL_HELP = "API base URL. Defaults to NEOAPI_API_URL or https://api.neoapi.ai."
CLI_TRACK_HELP = "Send one LLM output and wait for its delivery."
CLI_TRACK_TEXT_HELP = "Text of the LLM output."
CLI_PROJECT_HELP = "Project the output belongs to."
CLI_GROUP_HELP = "Group within the project."
CLI_MODEL_HELP = "Model that produced the output."
CLI_ANALYZE_HELP = "Ask the API for an analysis of the output and print it."
CLI_JSON_OUTPUT_HELP = "Pretty-print the analysis as JSON."
CLI_REPLAY_HELP = (
    "Send every event of a JSON-lines file, one event per line, "
    "and wait for delivery."
)
CLI_REPLAY_PATH_HELP = "JSON-lines file with one event per line."
CLI_BATCH_SIZE_HELP = "Initial batch size."
CLI_CHECK_FREQUENCY_HELP = "Deliver only every Nth event of a batch."
CLI_MAX_RETRIES_HELP = "Attempts per event before giving up."
