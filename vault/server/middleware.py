# vault/server/middleware.py

import asyncio
import logging
import time
import zlib
from functools import wraps

from quart import current_app, g, request

logger = logging.getLogger(__name__)


class BadBodyError(Exception):
    status_code = 400


class BodyTooLargeError(BadBodyError):
    status_code = 413


def gunzip(data: bytes, limit=None) -> bytes:
    """
    Decompresses a single gzip member, refusing to produce more than ``limit``
    bytes (no limit when None).
    """
    decoder = zlib.decompressobj(16 + zlib.MAX_WBITS)
    try:
        out = decoder.decompress(data, 0 if limit is None else limit + 1)
    except zlib.error as e:
        raise BadBodyError(f"Invalid gzip body: {e}") from e
    if limit is not None and len(out) > limit:
        raise BodyTooLargeError(f"Decompressed body exceeds {limit} bytes")
    if not decoder.eof or decoder.unused_data:
        raise BadBodyError("Invalid gzip body: truncated or trailing data")
    return out


async def read_body() -> bytes:
    """
    Request body, gunzipped when the client sent it gzip-encoded. The
    decompressed size is capped at the app's MAX_CONTENT_LENGTH.
    """
    data = await request.get_data()
    encoding = request.headers.get("Content-Encoding", "")
    if "gzip" in encoding.lower():
        return gunzip(data, current_app.config.get("MAX_CONTENT_LENGTH"))
    return data


def limit_concurrency(max_connections):
    """Serves at most ``max_connections`` requests at a time; the rest wait."""
    semaphore = asyncio.Semaphore(max_connections)

    def decorator(f):
        @wraps(f)
        async def wrapper(*args, **kwargs):
            async with semaphore:
                return await f(*args, **kwargs)
        return wrapper
    return decorator


def install_access_log(app):
    @app.before_request
    async def start_timer():
        g.request_started = time.monotonic()

    @app.after_request
    async def access_log(response):
        started = getattr(g, "request_started", None)
        elapsed_ms = (time.monotonic() - started) * 1000 if started is not None else 0.0
        logger.info(
            f"{request.method} {request.path} {response.status_code} "
            f"{elapsed_ms:.1f}ms user={request.headers.get('X-Auth-User', '-')}"
        )
        return response
