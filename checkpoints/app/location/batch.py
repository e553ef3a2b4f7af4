"""Background geocoding of rendered records in small, spaced-out batches.

Records inside a batch are resolved concurrently; batches run one after
another with a pause between them to stay within the geocoder's rate limit.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Protocol

import common.settings
from checkpoints.app.location.coordinates import Coordinate, CoordinateResolver
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)


class CoordinateSink(Protocol):
    """Receives resolved coordinates; the map sync engine implements this."""

    def apply_resolved_coordinate(
        self, record_id: str, coordinate: Coordinate
    ) -> bool: ...


class BatchGeocodeScheduler:
    def __init__(
        self,
        resolver: CoordinateResolver,
        batch_size: int | None = None,
        delay_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.resolver = resolver
        if batch_size is None:
            batch_size = common.settings.GEOCODE_BATCH_SIZE
        self.batch_size = max(1, batch_size)
        self.delay_seconds = (
            delay_seconds
            if delay_seconds is not None
            else common.settings.GEOCODE_BATCH_DELAY_SECONDS
        )
        self._sleep = sleep

    def pending(self, records: Iterable[CheckpointRecord]) -> list[CheckpointRecord]:
        """Records whose position could still improve by geocoding."""
        return [r for r in records if self.resolver.needs_resolution(r)]

    def partition(
        self, records: Sequence[CheckpointRecord]
    ) -> list[list[CheckpointRecord]]:
        return [
            list(records[i : i + self.batch_size])
            for i in range(0, len(records), self.batch_size)
        ]

    async def _resolve_one(
        self, record: CheckpointRecord, sink: CoordinateSink
    ) -> bool:
        coordinate = await self.resolver.resolve_async(record)
        return sink.apply_resolved_coordinate(record.id, coordinate)

    async def run(
        self, records: Iterable[CheckpointRecord], sink: CoordinateSink
    ) -> int:
        """Resolve every pending record and hand results to *sink*.

        Returns the number of markers that moved.
        """
        batches = self.partition(self.pending(records))
        if not batches:
            return 0
        logger.info(
            'Geocoding %d records in %d batches',
            sum(len(b) for b in batches),
            len(batches),
        )
        moved = 0
        for index, batch in enumerate(batches):
            if index:
                await self._sleep(self.delay_seconds)
            results = await asyncio.gather(
                *(self._resolve_one(record, sink) for record in batch)
            )
            moved += sum(results)
        logger.info('Geocoding finished, %d markers moved', moved)
        return moved

    def schedule(
        self, records: Iterable[CheckpointRecord], sink: CoordinateSink
    ) -> asyncio.Task[int]:
        """Start ``run`` in the background on the running loop."""
        return asyncio.create_task(self.run(list(records), sink))
