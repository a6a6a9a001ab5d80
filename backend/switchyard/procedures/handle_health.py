"""Health Procedures — input-less liveness check reachable through dispatch."""

from switchyard.core.context import Context
from switchyard.core.procedure import public_procedure
from switchyard.core.result import Ok
from switchyard.core.router import Router, create_router


async def ping(ctx: Context, _input: None) -> Ok:
    """Round-trip check through the full dispatch pipeline."""
    return Ok({"status": "ok", "authenticated": ctx.is_authenticated})


def build_health_router() -> Router:
    return create_router({
        "ping": public_procedure.query(ping),
    })
