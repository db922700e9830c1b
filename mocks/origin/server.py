"""
Mock http.cat origin serving deterministic placeholder images.
"""

from typing import Dict, Iterable, Optional
from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from shared.logging import get_logger

DEFAULT_CODES = (100, 200, 201, 204, 301, 302, 304, 400, 401, 403, 404, 405, 418, 429, 500, 502, 503)


def placeholder_image(code: str) -> bytes:
    """JPEG start/end markers around a readable label."""
    return b"\xff\xd8\xff\xe0" + f"http.cat {code}".encode() + b"\xff\xd9"


class MockOriginServer:
    """Mock http.cat server implementation.

    Tracks how many times each code was requested so tests can assert how
    often the cache went to the origin. ``available = False`` makes every
    request fail with 503.
    """

    def __init__(self, codes: Optional[Iterable[int]] = None):
        self.logger = get_logger("mock.origin")
        self.app = FastAPI(title="Mock http.cat", version="1.0.0", docs_url=None, redoc_url=None)
        self.images: Dict[str, bytes] = {
            str(code): placeholder_image(str(code))
            for code in (codes if codes is not None else DEFAULT_CODES)
        }
        self.request_counts: Dict[str, int] = {}
        self.available = True
        self._setup_routes()

    def _setup_routes(self):
        """Set up mock routes."""

        @self.app.get("/{code}")
        async def image(code: str):
            """Return the image for an HTTP status code."""
            self.request_counts[code] = self.request_counts.get(code, 0) + 1

            if not self.available:
                self.logger.info("Mock origin unavailable", code=code)
                return PlainTextResponse("Service Unavailable\n", status_code=503)

            content = self.images.get(code)
            if content is None:
                return PlainTextResponse("Not Found\n", status_code=404)
            return Response(content=content, media_type="image/jpeg")

    def total_requests(self) -> int:
        return sum(self.request_counts.values())


def create_app():
    """Create mock http.cat application."""
    server = MockOriginServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8090)
