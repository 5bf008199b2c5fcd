"""
Serverless ASGI entry point.

If the application fails to import (missing dependency, bad configuration),
every request is answered with a JSON 500 describing the startup error
instead of an opaque platform crash page.
"""
import json
import logging
import sys

logger = logging.getLogger(__name__)

startup_error = None

try:
    from app.main import app
except Exception as e:
    import traceback
    logger.error(f"PlantGuard AI failed to start: {e}", exc_info=True)
    startup_error = {
        "status": "startup_failed",
        "error": str(e),
        "type": type(e).__name__,
        "traceback": traceback.format_exc(),
        "python_version": sys.version
    }

    async def app(scope, receive, send):
        if scope["type"] != "http":
            return
        body = json.dumps(startup_error, ensure_ascii=False).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": 500,
            "headers": [
                [b"content-type", b"application/json; charset=utf-8"],
            ],
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })
