"""Built-in default configuration values for the function mesh.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.
"""

from __future__ import annotations

from typing import Any

DEFAULT_BASE_PORT = 8080
DEFAULT_LOCAL_HOST = "localhost"

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "json_output": True,
        "service": "function-mesh",
        "environment": "dev",
    },
    "http": {
        "timeout_seconds": 10.0,
        "follow_redirects": False,
    },
    "signing": {
        "service_name": "lambda",
        "default_region": "us-east-1",
    },
    "functions": {
        "default": {
            "port": {
                "base": DEFAULT_BASE_PORT,
            },
        },
    },
}
