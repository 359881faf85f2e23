"""
ASGI config for chakravyuh project.
"""

import os
import logging

# Set Django settings module BEFORE any Django imports
os.environ.setdefault('DJANGO_SETTINGS_MODULE',
                      'chakravyuh.settings.production')

from django.core.asgi import get_asgi_application  # noqa: E402

django_asgi_app = get_asgi_application()

logger = logging.getLogger(__name__)


class HealthCheckMiddleware:
    """
    ASGI middleware to handle health checks and lifespan protocol.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        # Django's ASGI handler does not speak the lifespan protocol
        if scope["type"] == "lifespan":
            while True:
                message = await receive()
                if message["type"] == "lifespan.startup":
                    await send({"type": "lifespan.startup.complete"})
                elif message["type"] == "lifespan.shutdown":
                    await send({"type": "lifespan.shutdown.complete"})
                    return

        # Answer health checks before Django so they never touch the database
        if scope["type"] == "http" and scope.get("path") == "/health":
            await send({
                "type": "http.response.start",
                "status": 200,
                "headers": [[b"content-type", b"text/plain"]],
            })
            await send({
                "type": "http.response.body",
                "body": b"OK",
            })
            return

        await self.app(scope, receive, send)


application = HealthCheckMiddleware(django_asgi_app)
