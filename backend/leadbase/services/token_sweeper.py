"""Periodic removal of expired and revoked refresh tokens.

Purely storage reclamation: a swept row and an absent row are equivalent
for validity checks, so the sweep never races a live session.
"""

import asyncio

from core.logging import logger
from services.token_ledger import TokenLedger


async def run_token_sweeper(ledger: TokenLedger, interval_seconds: float) -> None:
    """Sweep the ledger every `interval_seconds` until cancelled."""
    logger.info("Refresh token sweeper started (interval={}s)", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await ledger.sweep()
        except asyncio.CancelledError:
            raise
        except Exception:
            # NOTE: a failed pass is retried on the next tick
            logger.exception("Refresh token sweep failed")


def start_token_sweeper(ledger: TokenLedger, interval_seconds: float) -> asyncio.Task:
    return asyncio.create_task(
        run_token_sweeper(ledger, interval_seconds), name="refresh-token-sweeper"
    )


async def stop_token_sweeper(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("Refresh token sweeper stopped")
