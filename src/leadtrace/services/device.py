"""Coarse browser and OS detection from the User-Agent header."""

import re
from typing import Any

from leadtrace.schemas.visitor import Device

# (marker, label, version pattern); first match wins
BROWSER_PATTERNS: list[tuple[str, str, str]] = [
    ("Firefox/", "Firefox", r"Firefox/(\d+)"),
    ("Edg/", "Edge", r"Edg/(\d+)"),
    ("Chrome/", "Chrome", r"Chrome/(\d+)"),
]

OS_PATTERNS: list[tuple[str, str]] = [
    ("Windows NT 10", "Windows 10/11"),
    ("Windows", "Windows"),
    ("Android", "Android"),
    ("iPhone", "iOS"),
    ("iPad", "iOS"),
    ("Mac OS X", "macOS"),
    ("Linux", "Linux"),
]


def extract_browser(user_agent: str) -> str:
    for marker, label, pattern in BROWSER_PATTERNS:
        if marker in user_agent:
            match = re.search(pattern, user_agent)
            return f"{label} {match.group(1)}" if match else label
    if "Safari/" in user_agent:
        match = re.search(r"Version/(\d+)", user_agent)
        return f"Safari {match.group(1)}" if match else "Safari"
    return "Other"


def extract_os(user_agent: str) -> str:
    for marker, label in OS_PATTERNS:
        if marker in user_agent:
            return label
    return "Other"


def detect_device(user_agent: str | None, data: dict[str, Any]) -> Device:
    """Build the device record for a first sighting."""
    ua = user_agent or ""
    width, height = data.get("screenWidth"), data.get("screenHeight")
    return Device(
        browser=extract_browser(ua),
        os=extract_os(ua),
        device_type=str(data.get("deviceType") or "desktop"),
        screen_resolution=f"{width}x{height}" if width and height else "",
    )
