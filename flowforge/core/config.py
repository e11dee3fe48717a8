"""
Configuration and environment variables for the FlowForge engine and API
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Engine limits
MAX_STEPS = int(os.getenv("FLOWFORGE_MAX_STEPS", "1000"))  # Only guard against cyclic graphs
DEFAULT_DELAY_MS = int(os.getenv("FLOWFORGE_DEFAULT_DELAY_MS", "1000"))

# Outbound HTTP for REQUEST nodes
HTTP_TIMEOUT = float(os.getenv("FLOWFORGE_HTTP_TIMEOUT", "30"))
PROXY_URL = os.getenv("FLOWFORGE_PROXY_URL", "http://localhost:8000/api/v1/proxy")

# Clipboard sink: memory | command | disabled
CLIPBOARD_BACKEND = os.getenv("FLOWFORGE_CLIPBOARD", "memory").lower()
CLIPBOARD_COMMAND = os.getenv("FLOWFORGE_CLIPBOARD_COMMAND", "xclip -selection clipboard")

# CORS configuration
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FLOWFORGE_ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]


def config_summary() -> dict:
    """Non-secret view of the active configuration, used by the root endpoint."""
    return {
        "max_steps": MAX_STEPS,
        "default_delay_ms": DEFAULT_DELAY_MS,
        "http_timeout": HTTP_TIMEOUT,
        "proxy_url": PROXY_URL,
        "clipboard": CLIPBOARD_BACKEND,
    }
