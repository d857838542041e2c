import logging

from asconfig.audio.models import CapabilityRecord, StreamDirection
from asconfig.audio.prober import CapabilityProber

logger = logging.getLogger(__name__)


class DeviceCatalog:
    """Ordered playback and capture records from the most recent scan.

    The record tuples are replaced wholesale on refresh and never mutated,
    so a caller holding a record from an earlier scan keeps a stable view.
    """

    def __init__(self, prober: CapabilityProber) -> None:
        self.prober = prober
        self._playback: tuple[CapabilityRecord, ...] = ()
        self._capture: tuple[CapabilityRecord, ...] = ()

    @property
    def playback(self) -> tuple[CapabilityRecord, ...]:
        """Playback records in scan order."""
        return self._playback

    @property
    def capture(self) -> tuple[CapabilityRecord, ...]:
        """Capture records in scan order."""
        return self._capture

    def records(self, direction: StreamDirection) -> tuple[CapabilityRecord, ...]:
        """Return the records for one direction."""
        if direction is StreamDirection.PLAYBACK:
            return self._playback
        return self._capture

    def refresh(self) -> None:
        """Rescan both directions and replace the catalog contents."""
        playback = tuple(self.prober.probe(StreamDirection.PLAYBACK))
        capture = tuple(self.prober.probe(StreamDirection.CAPTURE))
        self._playback, self._capture = playback, capture
        logger.debug(
            "Catalog refreshed: %d playback, %d capture record(s)", len(playback), len(capture)
        )

    def find(self, direction: StreamDirection, hw_path: str) -> CapabilityRecord | None:
        """Look up a record by its hw path (e.g. ``hw:0,1``)."""
        for record in self.records(direction):
            if record.hw_path == hw_path:
                return record
        return None
