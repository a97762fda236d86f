"""Route test configuration: disable the rate limiter for unit tests."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting so render endpoints can be hit repeatedly."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield
