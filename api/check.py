"""
Vercel serverless endpoint: GET /api/check?address=0x...&type=referral

Maps the raw request onto handler.handler(event) and writes its response back.
"""

import os
import sys
from http.server import BaseHTTPRequestHandler
from typing import Any, Dict
from urllib.parse import parse_qs, urlparse

# Ensure Python can import from src/
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from handler import configure_logging, handler as handle_event  # noqa: E402

configure_logging()


def request_event(command: str, path: str, headers) -> Dict[str, Any]:
    return {
        "method": command,
        "headers": dict(headers.items()),
        "query": parse_qs(urlparse(path).query),
    }


class handler(BaseHTTPRequestHandler):  # Vercel Python uses `handler`
    def _dispatch(self):
        resp = handle_event(request_event(self.command, self.path, self.headers))
        body = resp["body"].encode("utf-8")

        self.send_response(resp["statusCode"])
        for name, value in resp["headers"].items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    do_GET = _dispatch
    do_POST = _dispatch
    do_OPTIONS = _dispatch
