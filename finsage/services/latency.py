# =============================================================================
# Simulated Latency
# =============================================================================
#
# The resolver and OCR stubs stand in for calls to an external AI API, so
# they pause before answering. The pause is an injected awaitable rather
# than a hard-coded asyncio.sleep(): tests pass a recorder and run without
# wall-clock timers.
# =============================================================================

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from finsage.config import Settings, settings

Delay = Callable[[float], Awaitable[None]]


async def no_delay(seconds: float) -> None:
    """Return immediately. Used when latency simulation is off."""
    return None


def get_delay(config: Settings | None = None) -> Delay:
    config = config or settings
    return asyncio.sleep if config.simulate_latency else no_delay
