"""
Shared fixtures for adversarial tests.

Provides a helper that releases many attacker threads at once, so
check-then-act windows in the lifecycle are actually contended.
"""

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest


@pytest.fixture
def attack() -> Callable[[Callable[[int], Any], int], list[Any]]:
    """
    Run `action(i)` for i in range(attackers) concurrently.

    All threads block on a barrier before acting. Exceptions are returned
    in place of results so callers can count each outcome.
    """

    def _attack(action: Callable[[int], Any], attackers: int) -> list[Any]:
        barrier = threading.Barrier(attackers)

        def run(i: int) -> Any:
            barrier.wait()
            try:
                return action(i)
            except Exception as exc:
                return exc

        with ThreadPoolExecutor(max_workers=attackers) as executor:
            return list(executor.map(run, range(attackers)))

    return _attack
