"""Handler for server-token resolution into a playable embed URL."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.models.requests import ServerInput
from kitsuneid.operations._common import cached, validate
from kitsuneid.sources import decode_server_token

if TYPE_CHECKING:
    from kitsuneid.state import AppState


async def handle(token: str | None, state: AppState) -> dict:
    validated = validate(ServerInput, "Pass a serverToken returned by /episode.", id=token)
    # Reject malformed tokens before touching the upstream.
    decode_server_token(validated.id)
    log = structlog.get_logger().bind(operation="server")
    log.info("handler_called")

    # The AJAX endpoint answers plain POSTs, so the render proxy has nothing to add.
    url = await cached(
        state,
        f"server:{validated.id}",
        state.settings.cache.ttl.server,
        lambda: state.otakudesu.resolve_server(validated.id),
    )
    log.info("server_complete", resolved=url is not None)
    return {"url": url}
