"""Tests for the periodic refresh token sweeper."""

import asyncio

from services.token_sweeper import start_token_sweeper, stop_token_sweeper


class CountingLedger:
    def __init__(self, fail_first=False):
        self.calls = 0
        self.fail_first = fail_first

    async def sweep(self):
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("database unavailable")
        return 0


def _run_for(ledger, seconds, interval=0.01):
    async def scenario():
        task = start_token_sweeper(ledger, interval)
        await asyncio.sleep(seconds)
        await stop_token_sweeper(task)
        return task

    return asyncio.run(scenario())


def test_sweeper_runs_periodically_and_stops():
    ledger = CountingLedger()

    task = _run_for(ledger, 0.1)

    assert ledger.calls >= 2
    assert task.done()


def test_sweeper_survives_a_failed_pass():
    ledger = CountingLedger(fail_first=True)

    _run_for(ledger, 0.1)

    assert ledger.calls >= 2


def test_sweeper_does_not_sweep_before_first_interval():
    ledger = CountingLedger()

    _run_for(ledger, 0.01, interval=60)

    assert ledger.calls == 0
