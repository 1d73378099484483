#!/usr/bin/env python3
"""Remove expired invitations and their pending shares.

Meant to run weekly from a scheduler.
"""

import asyncio
import sys

import logfire

from sharing.application.usecase.invitation import SweepInvitationsUseCase
from sharing.config import Settings
from sharing.util.di.container import create_container
from sharing.util.logging import setup_logging
from sharing.util.observability import configure_logfire


async def sweep() -> int:
    container = create_container(for_api=False)
    try:
        async with container() as request_container:
            use_case = await request_container.get(SweepInvitationsUseCase)
            response = await use_case.execute()
    finally:
        await container.close()
    return response.removed


def main() -> int:
    """Run one sweep and log the outcome to Logfire."""
    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    try:
        removed = asyncio.run(sweep())
        logfire.info("Expired invitations cleaned", removed=removed)
        return 0
    except Exception as e:
        logfire.error(
            "Invitation cleanup failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
