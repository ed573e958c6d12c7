"""
Tests for request-aware logging setup.
"""

import io
import logging

import pytest

from shortlinks.config import Settings
from shortlinks.logging_config import (
    RequestIdFilter,
    get_logger,
    resolve_level,
    set_request_id,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:
    
    def test_set_request_id_generates_when_missing(self):
        rid = set_request_id()
        assert len(rid) == 8
        assert set_request_id("abc") == "abc"
    
    def test_filter_adds_request_id(self):
        set_request_id("req-1")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "req-1"
    
    def test_resolve_level(self):
        assert resolve_level(Settings(LOG_LEVEL="warning")) == logging.WARNING
        assert resolve_level(Settings(LOG_LEVEL="nonsense")) == logging.INFO
        assert resolve_level(Settings(DEBUG=True, LOG_LEVEL="ERROR")) == logging.DEBUG
    
    def test_setup_logging_formats_records(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(Settings(LOG_LEVEL="INFO"), stream=stream)
        set_request_id("req-42")
        
        get_logger("shortlinks.test").info("hello")
        
        line = stream.getvalue().strip()
        assert "| INFO     | req-42 | shortlinks.test | hello" in line
