"""
Tests for reelforge.services.errors.rate_limit
"""

import pytest
from unittest.mock import MagicMock

from reelforge.core.exceptions import RateLimitedError
from reelforge.services.errors.rate_limit import is_rate_limit_error, rate_limit_reset_delay


class _StatusError(Exception):
    def __init__(self, status_code):
        super().__init__("upstream error")
        self.status_code = status_code


class TestIsRateLimitError:

    @pytest.mark.parametrize("message", [
        "Rate limit reached",
        "429 Too Many Requests",
        "quota exceeded for project",
    ])
    def test_message_match(self, message):
        assert is_rate_limit_error(RuntimeError(message))

    def test_status_field(self):
        assert is_rate_limit_error(_StatusError(429))
        assert not is_rate_limit_error(_StatusError(500))

    def test_typed_error(self):
        assert is_rate_limit_error(RateLimitedError())

    def test_plain_errors(self):
        assert not is_rate_limit_error(None)
        assert not is_rate_limit_error(ValueError("bad json"))


class TestRateLimitResetDelay:

    def test_default_when_no_hint(self):
        assert rate_limit_reset_delay(RuntimeError("429"), 60.0) == 60.0

    def test_small_values_are_seconds(self):
        assert rate_limit_reset_delay(RateLimitedError(retry_after=5), 60.0) == 5.0

    def test_large_values_are_milliseconds(self):
        assert rate_limit_reset_delay(RateLimitedError(retry_after=2500), 60.0) == 2.5

    def test_retry_after_header(self):
        error = RuntimeError("too many requests")
        error.response = MagicMock(headers={"retry-after": "7"})

        assert rate_limit_reset_delay(error, 60.0) == 7.0
