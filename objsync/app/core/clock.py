# objsync/app/core/clock.py
import asyncio
import time


class Clock:
    """Wall-clock time source shared by the store, the gateway and the reaper.

    Timestamps are integer milliseconds since the Unix epoch. Tests swap in a
    subclass that controls both ``now_ms`` and ``sleep``.
    """

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
