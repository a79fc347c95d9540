"""Type aliases used across recordbridge."""

from __future__ import annotations

from typing import Awaitable, Callable

# async sleep(seconds); injected so polling loops can run without waiting
SleepFn = Callable[[float], Awaitable[None]]
