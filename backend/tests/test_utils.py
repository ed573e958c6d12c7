"""
Unit tests for utility functions.
"""

import pytest
from datetime import datetime, timezone, timedelta

from shortlinks.utils import (
    is_valid_url,
    detect_user_agent_type,
    format_short_url,
    utc_now,
    normalize_utc,
)


class TestIsValidUrl:
    """Tests for is_valid_url function."""
    
    @pytest.mark.parametrize("url", [
        "http://example.com",
        "https://example.com",
        "https://example.com/path/to/page",
        "https://example.com?query=value",
        "http://localhost:8080/x",
    ])
    def test_valid_urls(self, url):
        assert is_valid_url(url) is True
    
    @pytest.mark.parametrize("url", [
        "",
        "example.com",
        "ftp://example.com",
        "HTTPS//example.com",
        "https://",
        "javascript:alert(1)",
    ])
    def test_invalid_urls(self, url):
        assert is_valid_url(url) is False
    
    def test_too_long(self):
        assert is_valid_url("https://example.com/" + "a" * 2048) is False


class TestDetectUserAgentType:
    """Tests for detect_user_agent_type function."""
    
    def test_empty(self):
        assert detect_user_agent_type("") == "unknown"
    
    def test_mobile(self):
        ua = (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1"
        )
        assert detect_user_agent_type(ua) == "mobile"
    
    def test_desktop(self):
        ua = (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        )
        assert detect_user_agent_type(ua) == "desktop"
    
    def test_bot(self):
        ua = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
        assert detect_user_agent_type(ua) == "bot"


class TestFormatShortUrl:
    """Tests for format_short_url function."""
    
    def test_formats_with_base_url(self):
        assert format_short_url("http://sho.rt", "abc123") == "http://sho.rt/abc123"
    
    def test_strips_trailing_slash(self):
        assert format_short_url("http://sho.rt/", "abc123") == "http://sho.rt/abc123"


class TestUtcHelpers:
    """Tests for utc_now and normalize_utc."""
    
    def test_utc_now_has_timezone(self):
        assert utc_now().tzinfo is not None
    
    def test_normalize_naive_assumes_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert normalize_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    
    def test_normalize_converts_offsets(self):
        local = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        result = normalize_utc(local)
        assert result.hour == 12
        assert result.utcoffset() == timedelta(0)
    
    def test_normalize_none(self):
        assert normalize_utc(None) is None
