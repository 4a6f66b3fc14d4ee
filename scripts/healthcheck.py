"""
Container health probe for the catalog API.

Exits 0 only when /health answers with {"status": "ok"}.
"""

from __future__ import annotations

import json
import os
from urllib.error import URLError
from urllib.request import urlopen


def probe(url: str, *, timeout: float = 2.0) -> bool:
    try:
        with urlopen(url, timeout=timeout) as response:
            if not 200 <= response.status < 300:
                return False
            payload = json.loads(response.read().decode("utf-8"))
    except (URLError, TimeoutError, ValueError):
        return False
    return isinstance(payload, dict) and payload.get("status") == "ok"


def main() -> int:
    port = os.getenv("PORT", "8000")
    path = os.getenv("HEALTHCHECK_PATH", "/health")
    return 0 if probe(f"http://127.0.0.1:{port}{path}") else 1


if __name__ == "__main__":
    raise SystemExit(main())
