# -*- coding: utf-8 -*-

__author__ = """neoapi.ai"""
__email__ = 'support@neoapi.ai'

import os

ROOT = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(ROOT, 'VERSION')) as version_file:
    VERSION = version_file.read().strip()

from neoapi.config import ClientConfig  # noqa: E402
from neoapi.errors import (  # noqa: E402
    ConfigurationError,
    DeliveryError,
    NeoApiError,
    RetryableHTTPError,
)
from neoapi.models import LLMOutput  # noqa: E402
from neoapi.client import NeoApiClient  # noqa: E402
from neoapi.background import BackgroundClient  # noqa: E402
from neoapi.callbacks import (  # noqa: E402
    DeliveryCallbacks,
    LoggingCallbacks,
    NullDeliveryCallbacks,
)
from neoapi.instrument import instrument, track_llm_output  # noqa: E402

__all__ = [
    "VERSION",
    "BackgroundClient",
    "ClientConfig",
    "ConfigurationError",
    "DeliveryCallbacks",
    "DeliveryError",
    "LLMOutput",
    "LoggingCallbacks",
    "NeoApiClient",
    "NeoApiError",
    "NullDeliveryCallbacks",
    "RetryableHTTPError",
    "instrument",
    "track_llm_output",
]
