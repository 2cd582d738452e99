"""
Server time alignment.

Guard codes and confirmation keys are only accepted within about one time
step of the server clock, so every time code is generated from
`local time + offset` where the offset is measured once per session.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from ..errors import NotAlignedError, TimeQueryFailedError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
QueryTime = Callable[[], Awaitable[int]]


class ServerTimeAligner:
    """
    Measures and caches `remote_time - local_time`.

    Args:
        query_time: Coroutine function returning the remote Unix time.
        clock: Local time source, defaults to `time.time`.

    Example:
        >>> aligner = ServerTimeAligner(api.query_time)
        >>> await aligner.align()
        >>> aligner.now()
        1700000000
    """

    def __init__(self, query_time: QueryTime, clock: Clock = time.time) -> None:
        self._query_time = query_time
        self._clock = clock
        self._offset: int | None = None

    @property
    def is_aligned(self) -> bool:
        return self._offset is not None

    @property
    def offset(self) -> int | None:
        """Seconds to add to local time, or None when not aligned yet."""
        return self._offset

    async def align(self) -> int:
        """
        Query the remote clock once and store the offset.

        Returns:
            The measured offset in seconds.

        Raises:
            TimeQueryFailedError: If the remote time query fails.
        """
        local_before = int(self._clock())
        try:
            remote = int(await self._query_time())
        except (TypeError, ValueError) as e:
            raise TimeQueryFailedError(
                f"remote time was not a number: {e}", transition="align_time"
            ) from e
        except Exception as e:
            raise TimeQueryFailedError(
                f"remote time query failed: {e}", transition="align_time"
            ) from e

        self._offset = remote - local_before
        logger.info(f"Server time aligned, offset {self._offset:+d}s")
        return self._offset

    def now(self) -> int:
        """
        Aligned Unix time in whole seconds.

        Raises:
            NotAlignedError: If `align()` never completed.
        """
        if self._offset is None:
            raise NotAlignedError("align() must be called before aligned time can be read")
        return int(self._clock()) + self._offset
