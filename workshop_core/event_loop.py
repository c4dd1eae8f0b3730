"""
Process-wide asyncio event loop for the synchronous Flask views.

functions_framework calls each view on a worker thread. Views hand their
request coroutine to one loop running on a daemon thread and block until it
resolves. Tasks the coroutine leaves behind (cache writes) keep running on
that loop after the view has returned.
"""

import asyncio
import threading
from typing import Optional

_loop: Optional[asyncio.AbstractEventLoop] = None
_lock = threading.Lock()


def get_loop() -> asyncio.AbstractEventLoop:
    """Return the shared loop, starting it on first use."""
    global _loop
    with _lock:
        if _loop is None or _loop.is_closed():
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=loop.run_forever,
                name='workshop-event-loop',
                daemon=True
            )
            thread.start()
            _loop = loop
        return _loop


def run(coro, timeout: Optional[float] = None):
    """Run a coroutine on the shared loop and return its result."""
    future = asyncio.run_coroutine_threadsafe(coro, get_loop())
    return future.result(timeout)
