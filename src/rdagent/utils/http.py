import requests
from requests.adapters import HTTPAdapter
from typing import Optional, Dict

from .. import __version__
from .logging import get_logger

logger = get_logger(__name__)

# Connection pool configuration
DEFAULT_POOL_CONNECTIONS = 2   # Device and WireGuard endpoints
DEFAULT_POOL_MAXSIZE = 4
DEFAULT_POOL_BLOCK = False


class StandardClient:
    """
    Standard HTTP session for talking to the fleet control plane.

    Requests are never retried at this layer: the adapter is mounted with
    ``max_retries=0`` and callers decide what a failure means.
    """
    def __init__(
        self,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        pool_connections: int = DEFAULT_POOL_CONNECTIONS,
        pool_maxsize: int = DEFAULT_POOL_MAXSIZE,
    ):
        self.timeout = timeout
        self.session = requests.Session()

        adapter = HTTPAdapter(
            max_retries=0,
            pool_connections=pool_connections,
            pool_maxsize=pool_maxsize,
            pool_block=DEFAULT_POOL_BLOCK,
        )
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        # Standard Headers
        self.session.headers.update({
            "User-Agent": f"rdagent/{__version__}",
            "Accept": "application/json",
        })
        if headers:
            self.session.headers.update(headers)

    def post(self, url: str, **kwargs) -> requests.Response:
        """Issue a POST with the client timeout; transport errors propagate."""
        logger.debug(f"POST {url}")
        return self.session.post(url, timeout=self.timeout, **kwargs)

    def close(self):
        self.session.close()
