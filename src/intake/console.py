"""
Terminal prompts that do not hold up interpreter shutdown.

input() cannot be interrupted, so each prompt runs on its own daemon thread
instead of the loop's default executor; asyncio.run() would otherwise wait
for a blocked read to finish before exiting after Ctrl-C.
"""

import asyncio
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


async def read_line(ask: Callable[[str], str], prompt: str) -> str:
    """Call ask(prompt) on a daemon thread and await its answer.

    Exceptions raised by ask (EOFError included) are re-raised here.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def deliver(setter, value):
        if not future.done():
            setter(value)

    def reader():
        try:
            answer = ask(prompt)
        except Exception as e:
            setter, value = future.set_exception, e
        else:
            setter, value = future.set_result, answer
        try:
            loop.call_soon_threadsafe(deliver, setter, value)
        except RuntimeError:
            logger.debug("Prompt answered after the event loop closed; dropped")

    threading.Thread(target=reader, name="intake-prompt", daemon=True).start()
    return await future
