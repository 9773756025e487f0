"""Default User-Agent sent by the bridges."""

import sys
from typing import Optional

from esview.bridge import __version__

_PY_VERSION = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"


def get_user_agent(http_lib_version: str, client_name: Optional[str] = None) -> str:
    """Build the User-Agent that identifies this package to Elasticsearch.

    The value shows up in cluster audit and slow logs, so it names the package, the interpreter,
    the HTTP library and the bridge class.

    Args:
        http_lib_version: The HTTP library and version (e.g., "requests/2.32.3")
        client_name: Bridge class name, or a name chosen by the caller

    Returns:
        User-Agent string like "esview-bridge/0.1.0 python/3.12.1 requests/2.32.3 HttpBridge"
    """
    base = f"esview-bridge/{__version__} python/{_PY_VERSION} {http_lib_version}"

    if client_name:
        return f"{base} {client_name}"
    return base
