"""
Container health check against the API's database-backed health endpoint.
"""

from __future__ import annotations

import json
import os
import sys
from urllib.error import URLError
from urllib.request import urlopen


def main() -> int:
    port = os.getenv("PORT", "8000")
    path = os.getenv("HEALTHCHECK_PATH", "/api/health")
    url = f"http://127.0.0.1:{port}{path}"

    try:
        with urlopen(url, timeout=5) as response:
            if response.status != 200:
                return 1
            payload = json.loads(response.read().decode("utf-8"))
    except (URLError, TimeoutError, ValueError) as exc:
        print(f"healthcheck failed url={url} error={exc}", file=sys.stderr)
        return 1

    return 0 if payload.get("healthy") is True else 1


if __name__ == "__main__":
    raise SystemExit(main())
