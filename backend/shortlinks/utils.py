"""
Small helpers shared by the engine and the HTTP layer.
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request
from user_agents import parse as parse_user_agent  # type: ignore

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = ("http://", "https://")

# Checked in order; a tablet UA can also report is_mobile in some parsers
DEVICE_CHECKS = (
    ("bot", "is_bot"),
    ("tablet", "is_tablet"),
    ("mobile", "is_mobile"),
    ("desktop", "is_pc"),
)


def is_valid_url(url: str) -> bool:
    """Accept http(s) URLs with a host, up to MAX_URL_LENGTH characters."""
    if not url or len(url) > MAX_URL_LENGTH or not url.startswith(ALLOWED_SCHEMES):
        return False
    try:
        host = urlsplit(url).netloc
    except ValueError:
        return False
    return host != ""


def detect_user_agent_type(user_agent_string: str) -> str:
    """Classify a User-Agent header as bot, tablet, mobile, desktop or other."""
    if not user_agent_string:
        return "unknown"
    
    try:
        parsed = parse_user_agent(user_agent_string)
    except Exception:
        return "unknown"
    
    for device_type, flag in DEVICE_CHECKS:
        if getattr(parsed, flag, False):
            return device_type
    return "other"


def get_client_ip(request: Request) -> str:
    """Visitor IP: Cloudflare header, then the first X-Forwarded-For hop, then the peer."""
    for header in ("CF-Connecting-IP", "X-Forwarded-For"):
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip()
    
    if request.client is None:
        return "unknown"
    return request.client.host


def format_short_url(base_url: str, code: str) -> str:
    return base_url.rstrip("/") + "/" + code


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Coerce to aware UTC; naive values are taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
