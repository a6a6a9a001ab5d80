"""Root Router — the single namespace tree every request resolves against.

Invariants:
    - Built once at startup; a malformed tree raises ConfigurationError and aborts startup
    - Adding a namespace requires editing this function (no auto-discovery)
"""

import logging

from switchyard.config import Settings
from switchyard.core.router import Router, create_router
from switchyard.procedures.handle_health import build_health_router
from switchyard.procedures.handle_posts import build_post_router
from switchyard.procedures.handle_users import build_user_router

logger = logging.getLogger(__name__)


def build_app_router(settings: Settings) -> Router:
    router = create_router({
        "health": build_health_router(),
        "user": build_user_router(settings),
        "post": build_post_router(),
    })
    logger.info(f"Router built with {len(router.procedures())} procedures")
    return router
