"""Hardware capability query backends.

The prober only depends on the ``HardwareBackend`` contract: card enumeration,
per-card device enumeration, non-blocking pcm open with a busy/error distinction
and parameter-range queries on an opened device. ``AlsaBackend`` implements it
with pyalsaaudio for pcm access and /proc/asound for card and device identity.
"""

import errno
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path

import alsaaudio

from asconfig.audio.models import CardInfo, DeviceInfo, HardwareParams, StreamDirection
from asconfig.exceptions import (
    ControlAccessError,
    DeviceBusyError,
    DeviceOpenError,
    HardwareQueryError,
)

_PCM_DIR_PATTERN = re.compile(r"^pcm(\d+)([pc])$")


class PcmHandle(ABC):
    """An opened pcm device whose parameter space can be queried."""

    @abstractmethod
    def query_params(self) -> HardwareParams:
        """Return the full parameter space of the device.

        Raises:
            HardwareQueryError: If the hardware refuses the query
        """

    @abstractmethod
    def try_rate(self, rate: int) -> bool:
        """Return True if the hardware accepts this sample rate."""

    @abstractmethod
    def try_format(self, format_name: str) -> bool:
        """Return True if the hardware accepts this sample format."""

    @abstractmethod
    def try_channels(self, channels: int) -> bool:
        """Return True if the hardware accepts this channel count."""


class HardwareBackend(ABC):
    """Source of sound card, device and pcm capability information."""

    @abstractmethod
    def card_indexes(self) -> list[int]:
        """Return the indexes of every sound card visible to the system."""

    @abstractmethod
    def card_info(self, card: int) -> CardInfo:
        """Return the identity of a card.

        Raises:
            ControlAccessError: If the card's control interface cannot be read
        """

    @abstractmethod
    def device_indexes(self, card: int, direction: StreamDirection) -> list[int]:
        """Return the pcm device indexes of a card for one direction.

        Raises:
            ControlAccessError: If the card's control interface cannot be read
        """

    @abstractmethod
    def device_info(self, card: int, device: int, direction: StreamDirection) -> DeviceInfo:
        """Return the identity of one pcm device.

        Raises:
            ControlAccessError: If the device's pcm info cannot be read
        """

    @abstractmethod
    def open_pcm(
        self, hw_path: str, direction: StreamDirection
    ) -> AbstractContextManager[PcmHandle]:
        """Open a pcm device in non-blocking mode as a context manager yielding a PcmHandle.

        The handle is closed when the context exits.

        Raises:
            DeviceBusyError: If another process holds the device
            DeviceOpenError: For any other open failure
        """


class AlsaPcmHandle(PcmHandle):
    """PcmHandle backed by an ``alsaaudio.PCM`` object."""

    def __init__(self, pcm: "alsaaudio.PCM", hw_path: str) -> None:
        self.pcm = pcm
        self.hw_path = hw_path
        self._params: HardwareParams | None = None
        self._channels: list[int] = []
        self._rates: int | tuple | list | None = None

    def query_params(self) -> HardwareParams:
        """Query channel counts, rate bounds and the supported format mask."""
        if self._params is not None:
            return self._params

        try:
            formats = tuple(self.pcm.getformats().keys())
            channels = sorted(self.pcm.getchannels())
            rate_min, rate_max = self.pcm.getratebounds()
            self._rates = self.pcm.getrates()
        except alsaaudio.ALSAAudioError as e:
            raise HardwareQueryError(self.hw_path, str(e)) from e

        if not channels or not formats:
            raise HardwareQueryError(self.hw_path, "empty channel or format set")

        self._channels = channels
        self._params = HardwareParams(
            channels_min=channels[0],
            channels_max=channels[-1],
            rate_min=int(rate_min),
            rate_max=int(rate_max),
            formats=formats,
        )
        return self._params

    def try_rate(self, rate: int) -> bool:
        """Check the rate against the discrete rate list or the continuous range."""
        params = self.query_params()
        rates = self._rates
        if isinstance(rates, int):
            return rate == rates
        if isinstance(rates, list):
            return rate in rates
        return params.rate_min <= rate <= params.rate_max

    def try_format(self, format_name: str) -> bool:
        """Check the format against the hardware format mask."""
        return format_name in self.query_params().formats

    def try_channels(self, channels: int) -> bool:
        """Check the channel count against the supported channel counts."""
        self.query_params()
        return channels in self._channels


class AlsaBackend(HardwareBackend):
    """HardwareBackend using pyalsaaudio and the /proc/asound tree."""

    def __init__(self, proc_root: Path | None = None) -> None:
        self.proc_root = proc_root or Path("/proc/asound")

    def card_indexes(self) -> list[int]:
        """Return card indexes as reported by ALSA."""
        return list(alsaaudio.card_indexes())

    def card_info(self, card: int) -> CardInfo:
        """Read the card id from /proc and the card name from ALSA."""
        try:
            card_id = (self.proc_root / f"card{card}" / "id").read_text().strip()
            card_name = alsaaudio.card_name(card)[0]
        except (OSError, alsaaudio.ALSAAudioError) as e:
            raise ControlAccessError(f"hw:{card}", str(e)) from e
        return CardInfo(index=card, id=card_id, name=card_name)

    def device_indexes(self, card: int, direction: StreamDirection) -> list[int]:
        """List pcmNp / pcmNc directories of a card."""
        card_dir = self.proc_root / f"card{card}"
        if not card_dir.is_dir():
            raise ControlAccessError(f"hw:{card}", f"{card_dir} not found")

        devices = []
        for entry in card_dir.iterdir():
            match = _PCM_DIR_PATTERN.match(entry.name)
            if match and match.group(2) == direction.proc_suffix:
                devices.append(int(match.group(1)))
        return sorted(devices)

    def device_info(self, card: int, device: int, direction: StreamDirection) -> DeviceInfo:
        """Parse the ``info`` file of a pcm device."""
        info_path = self.proc_root / f"card{card}" / f"pcm{device}{direction.proc_suffix}" / "info"
        try:
            info_text = info_path.read_text()
        except OSError as e:
            raise ControlAccessError(f"hw:{card},{device}", str(e)) from e

        fields: dict[str, str] = {}
        for line in info_text.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                fields[key.strip()] = value.strip()

        return DeviceInfo(index=device, id=fields.get("id", ""), name=fields.get("name", ""))

    @contextmanager
    def open_pcm(self, hw_path: str, direction: StreamDirection) -> Iterator[AlsaPcmHandle]:
        """Open the pcm non-blocking so that a busy device fails immediately."""
        pcm_type = (
            alsaaudio.PCM_PLAYBACK if direction is StreamDirection.PLAYBACK else alsaaudio.PCM_CAPTURE
        )
        try:
            pcm = alsaaudio.PCM(type=pcm_type, mode=alsaaudio.PCM_NONBLOCK, device=hw_path)
        except alsaaudio.ALSAAudioError as e:
            if _is_busy(e):
                raise DeviceBusyError(hw_path) from e
            raise DeviceOpenError(hw_path, str(e)) from e

        try:
            yield AlsaPcmHandle(pcm, hw_path)
        finally:
            pcm.close()


def _is_busy(error: Exception) -> bool:
    """Return True if an ALSA open error means the device is held elsewhere."""
    if getattr(error, "errno", None) == errno.EBUSY:
        return True
    return "busy" in str(error).lower()
