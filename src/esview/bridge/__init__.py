import logging
import os
from logging import NullHandler
from pathlib import Path

from esview.bridge.errors import (
    BodyReadError,
    BridgeError,
    ClusterError,
    DispatchError,
    InvalidPayloadError,
    UnsupportedMethodError,
)
from esview.bridge.models import SUPPORTED_METHODS, RequestDescription, ResponseDescription, resolve_method

logging.getLogger(__name__).addHandler(NullHandler())

__all__ = [
    "BodyReadError",
    "BridgeError",
    "ClusterError",
    "DispatchError",
    "InvalidPayloadError",
    "RequestDescription",
    "ResponseDescription",
    "SUPPORTED_METHODS",
    "UnsupportedMethodError",
    "resolve_method",
]

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0"

APP_IDENTIFIER = "es-view"
STATE_FILE_NAME = "es-view.state.json"

DEFAULT_STATE_FILE_PATH = (
    Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / APP_IDENTIFIER / STATE_FILE_NAME
)
