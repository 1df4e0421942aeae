"""
HTTP session used by handlers. Retries and timeouts live here, never in the
task pipeline.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import constants as c
from .config import HTTPConfig

logger = logging.getLogger(__name__)


class TimeoutSession(requests.Session):
    """A requests session with a default timeout applied to every request."""

    def __init__(self, timeout: float = c.DEFAULT_HTTP_TIMEOUT_SECONDS):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


def create_retry_session(config: Optional[HTTPConfig] = None) -> requests.Session:
    """Creates a requests session with retry logic."""
    config = config or HTTPConfig()
    session = TimeoutSession(timeout=config.timeout)
    retry = Retry(
        total=config.max_retries,
        read=config.max_retries,
        connect=config.max_retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=c.RETRY_STATUS_FORCELIST,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": config.user_agent})
    logger.debug(f"Created HTTP session (timeout={config.timeout}s, retries={config.max_retries})")
    return session


def is_response_ok(response: Optional[requests.Response]) -> bool:
    return response is not None and 200 <= response.status_code < 300
