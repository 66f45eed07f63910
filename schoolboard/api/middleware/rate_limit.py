# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Limits are applied per client: the authenticated user id, or the client
IP address for anonymous callers. Mutation endpoints carry the stricter
MUTATION_LIMIT.

Example:
    @router.post("/{student_id}/class")
    @limiter.limit(MUTATION_LIMIT)
    async def assign_class(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from schoolboard.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Args:
        request: HTTP request.

    Returns:
        ``user:<id>`` for authenticated callers, ``ip:<address>`` otherwise.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.rate_limit.storage_uri,
    enabled=settings.rate_limit.enabled,
)

MUTATION_LIMIT = f"{settings.rate_limit.mutations_per_minute}/minute"
