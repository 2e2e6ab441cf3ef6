from importlib.metadata import PackageNotFoundError, version
import logging
import platform
from typing import Dict, Optional


LOG = logging.getLogger(__name__)


def get_version() -> Optional[str]:
    """
    Get the version of the neoapi package.

    Returns:
      Optional[str]: The installed version if found, otherwise the bundled one.
    """
    try:
        return version("neoapi")
    except PackageNotFoundError:
        LOG.debug("neoapi is not installed, using the bundled VERSION file.")
        from neoapi import VERSION

        return VERSION


def get_user_agent() -> str:
    """
    User-Agent sent with every request, e.g.
    `neoapi-python/0.2.0 (Linux x86_64; Python/3.12.1)`.
    """
    return "neoapi-python/{} ({} {}; Python/{})".format(
        get_version() or "unknown",
        platform.system(),
        platform.machine() or "unknown",
        platform.python_version(),
    )


def get_meta_http_headers(api_key: str) -> Dict[str, str]:
    """
    Get the headers sent with every request.

    Args:
      api_key (str): The key used for bearer authentication.

    Returns:
      Dict[str, str]: The request headers.
    """
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "User-Agent": get_user_agent(),
    }
