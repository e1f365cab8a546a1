"""HTTP helpers shared by the recipe sources: polite crawling and retries."""

from .polite import DEFAULT_USER_AGENT, PoliteSession, check_robots_allowed, load_robots
from .retry import TRANSIENT_ERRORS, retry_on_connection_error

__all__ = [
    "DEFAULT_USER_AGENT",
    "PoliteSession",
    "check_robots_allowed",
    "load_robots",
    "TRANSIENT_ERRORS",
    "retry_on_connection_error",
]
