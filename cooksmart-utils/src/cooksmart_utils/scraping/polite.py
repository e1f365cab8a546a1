"""Polite HTTP session for recipe websites, with robots.txt compliance."""

import logging
import random
import threading
import time
from typing import Dict, Optional, Tuple
from urllib import robotparser
from urllib.parse import urljoin, urlparse

import requests

from cooksmart_utils.errors import NetworkError

from .retry import retry_on_connection_error

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "cooksmart-bot/1.0"
DEFAULT_CRAWL_DELAY = 1.0


def load_robots(base_url: str) -> Optional[robotparser.RobotFileParser]:
    """Fetch and parse a site's robots.txt.

    Returns:
        The parser, or None when robots.txt could not be read.
    """
    rp = robotparser.RobotFileParser()
    rp.set_url(urljoin(base_url, "/robots.txt"))
    try:
        rp.read()
    except OSError as e:
        logger.debug(f"Could not read robots.txt for {base_url}: {e}")
        return None
    return rp


def check_robots_allowed(base_url: str, url: str, user_agent: str = "*") -> bool:
    """Check if a URL is allowed by robots.txt.

    A robots.txt that cannot be read allows everything.

    Example:
        >>> check_robots_allowed("https://example.com", "https://example.com/recipes", "cooksmart-bot/1.0")
        True
    """
    rp = load_robots(base_url)
    return True if rp is None else rp.can_fetch(user_agent, url)


class PoliteSession:
    """A requests session that respects robots.txt and waits between requests.

    robots.txt is read once per session. Requests from several threads are
    serialized so the crawl delay holds per site.

    Attributes:
        session: The underlying requests session
        base_url: Base URL for robots.txt checking
        user_agent: User agent string
        crawl_delay: Delay between requests in seconds
        jitter_range: Random jitter range to add to delays
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = DEFAULT_USER_AGENT,
        crawl_delay: Optional[float] = None,
        jitter_range: Tuple[float, float] = (0.5, 1.5),
        timeout: float = 30,
    ):
        self.session = requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self.base_url = base_url
        self.user_agent = user_agent
        self.jitter_range = jitter_range
        self.timeout = timeout
        self._robots = load_robots(base_url)
        self._lock = threading.Lock()
        self._last_request = 0.0

        if crawl_delay is not None:
            self.crawl_delay = crawl_delay
        elif self._robots is not None:
            self.crawl_delay = self._robots.crawl_delay(user_agent) or DEFAULT_CRAWL_DELAY
        else:
            self.crawl_delay = DEFAULT_CRAWL_DELAY

    def is_allowed(self, url: str) -> bool:
        if self._robots is None:
            return True
        return self._robots.can_fetch(self.user_agent, url)

    def _wait(self) -> None:
        """Sleep out the rest of the crawl delay plus random jitter."""
        jitter = random.uniform(*self.jitter_range)
        remaining = self._last_request + self.crawl_delay + jitter - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)

    @retry_on_connection_error()
    def _fetch(self, url: str, **kwargs) -> requests.Response:
        with self._lock:
            self._wait()
            try:
                return self.session.get(url, **kwargs)
            finally:
                self._last_request = time.monotonic()

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make a polite GET request with robots.txt checking and delays.

        Args:
            url: URL to request
            **kwargs: Additional arguments passed to ``Session.get``

        Returns:
            Response object with a 2xx status

        Raises:
            NetworkError: If robots.txt disallows the URL, the request fails
                after retries, or the response status is not 2xx.
        """
        source = urlparse(self.base_url).netloc or self.base_url
        if not self.is_allowed(url):
            raise NetworkError(f"robots.txt disallows {url}", source=source)

        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._fetch(url, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"GET {url} failed: {e}", source=source) from e
        return response
