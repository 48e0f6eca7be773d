"""
Batch planning and concurrent chunk execution.
"""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar, Union

T = TypeVar("T")

ChunkOutcome = Union[T, BaseException]


def plan_batches(identifiers: Sequence[str], max_batch_size: int) -> List[List[str]]:
    """Split ``identifiers`` into contiguous chunks of at most ``max_batch_size``."""
    if max_batch_size < 1:
        raise ValueError("max_batch_size must be at least 1")
    return [
        list(identifiers[start:start + max_batch_size])
        for start in range(0, len(identifiers), max_batch_size)
    ]


async def fan_out(
    chunks: Sequence[List[str]],
    fetch: Callable[[List[str]], Awaitable[T]],
) -> List[ChunkOutcome]:
    """Run ``fetch`` for every chunk and wait for all of them.

    One outcome per chunk, in chunk order: the chunk's result, or the exception
    its fetch raised. A failing chunk does not cancel its siblings. A single
    chunk is awaited inline.
    """
    if not chunks:
        return []

    if len(chunks) == 1:
        try:
            return [await fetch(chunks[0])]
        except Exception as exc:
            return [exc]

    return list(await asyncio.gather(*(fetch(chunk) for chunk in chunks), return_exceptions=True))
