"""Centralized defaults and constants."""

# Browser families Playwright can launch
BROWSER_FAMILIES = ("chromium", "firefox", "webkit")
DEFAULT_BROWSER = "chromium"

# Default viewport
DEFAULT_VIEWPORT = (1280, 720)

# Timeouts (milliseconds)
DEFAULT_EXECUTION_TIMEOUT_MS = 30_000
DEFAULT_ELEMENT_WAIT_TIMEOUT_MS = 10_000
DEFAULT_API_TIMEOUT_MS = 15_000

# Evidence
DEFAULT_EVIDENCE_BASE_PATH = "TestResults/Evidence"
EVIDENCE_CATEGORIES = {
    "screenshot": "screenshots",
    "video": "videos",
    "error_detail": "errors",
    "request_log": "api",
    "response_log": "api",
}
MIME_TYPES = {
    ".png": "image/png",
    ".webm": "video/webm",
    ".json": "application/json",
    ".txt": "text/plain",
}

# Auth schemes understood by ApiAbility
AUTH_TYPES = ("none", "bearer", "basic")

# Config file looked up in the working directory when none is given
DEFAULT_CONFIG_FILENAME = "playbill.yaml"
