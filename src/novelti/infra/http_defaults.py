"""
Provides default HTTP headers and user-agent settings used by the
upstream session layer.
"""

from novelti.version import __version__

# -----------------------------------------------------------------------------
# Default preferences & headers
# -----------------------------------------------------------------------------

DEFAULT_USER_AGENT = f"novelti/{__version__} (+https://github.com/keeley1/novelti-backend)"

ACCEPT_JSON = "application/json"

DEFAULT_USER_HEADERS = {
    "Accept": ACCEPT_JSON,
    "Accept-Encoding": "gzip, deflate",
    "Accept-Language": "en;q=0.9",
    "User-Agent": DEFAULT_USER_AGENT,
    "Connection": "keep-alive",
}
