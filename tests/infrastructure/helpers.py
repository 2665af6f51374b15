"""Small helpers shared by the async unit tests."""

import asyncio

MOUNT_ID = "reader"


async def settle(rounds: int = 5) -> None:
    """Let tasks spawned by engine callbacks run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)
