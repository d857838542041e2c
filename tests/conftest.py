from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from asconfig.audio.backend import HardwareBackend, PcmHandle
from asconfig.audio.models import (
    Availability,
    CapabilityRecord,
    CardInfo,
    DeviceInfo,
    HardwareParams,
    StreamDirection,
)
from asconfig.exceptions import (
    ControlAccessError,
    DeviceBusyError,
    DeviceOpenError,
    HardwareQueryError,
)


@dataclass
class FakeDevice:
    """A simulated pcm device with a fixed parameter space."""

    index: int
    id: str
    name: str
    formats: tuple[str, ...] = ("S16_LE", "S32_LE")
    channels: tuple[int, ...] = (2,)
    rate_min: int = 44100
    rate_max: int = 192000
    busy: bool = False
    open_error: str | None = None  # Open fails for a reason other than busy
    query_error: str | None = None  # Opens, but parameters cannot be queried
    info_error: str | None = None  # pcm info cannot be read


@dataclass
class FakeCard:
    """A simulated sound card."""

    index: int
    id: str
    name: str
    playback: list[FakeDevice] = field(default_factory=list)
    capture: list[FakeDevice] = field(default_factory=list)
    control_error: str | None = None

    def devices(self, direction: StreamDirection) -> list[FakeDevice]:
        return self.playback if direction is StreamDirection.PLAYBACK else self.capture


class FakePcmHandle(PcmHandle):
    def __init__(self, device: FakeDevice, hw_path: str):
        self.device = device
        self.hw_path = hw_path

    def query_params(self) -> HardwareParams:
        if self.device.query_error:
            raise HardwareQueryError(self.hw_path, self.device.query_error)
        return HardwareParams(
            channels_min=min(self.device.channels),
            channels_max=max(self.device.channels),
            rate_min=self.device.rate_min,
            rate_max=self.device.rate_max,
            formats=self.device.formats,
        )

    def try_rate(self, rate: int) -> bool:
        return self.device.rate_min <= rate <= self.device.rate_max

    def try_format(self, format_name: str) -> bool:
        return format_name in self.device.formats

    def try_channels(self, channels: int) -> bool:
        return channels in self.device.channels


class FakeBackend(HardwareBackend):
    """In-memory HardwareBackend that records which devices were opened and closed."""

    def __init__(self, cards: list[FakeCard]):
        self.cards = {card.index: card for card in cards}
        self.opened: list[str] = []
        self.closed: list[str] = []

    def _card(self, card: int) -> FakeCard:
        fake_card = self.cards[card]
        if fake_card.control_error:
            raise ControlAccessError(f"hw:{card}", fake_card.control_error)
        return fake_card

    def _device(self, card: int, device: int, direction: StreamDirection) -> FakeDevice:
        for fake_device in self._card(card).devices(direction):
            if fake_device.index == device:
                return fake_device
        raise KeyError(f"hw:{card},{device}")

    def card_indexes(self) -> list[int]:
        return sorted(self.cards)

    def card_info(self, card: int) -> CardInfo:
        fake_card = self._card(card)
        return CardInfo(index=card, id=fake_card.id, name=fake_card.name)

    def device_indexes(self, card: int, direction: StreamDirection) -> list[int]:
        return [device.index for device in self._card(card).devices(direction)]

    def device_info(self, card: int, device: int, direction: StreamDirection) -> DeviceInfo:
        fake_device = self._device(card, device, direction)
        if fake_device.info_error:
            raise ControlAccessError(f"hw:{card},{device}", fake_device.info_error)
        return DeviceInfo(index=device, id=fake_device.id, name=fake_device.name)

    @contextmanager
    def open_pcm(self, hw_path: str, direction: StreamDirection) -> Iterator[FakePcmHandle]:
        card, device = (int(part) for part in hw_path.removeprefix("hw:").split(","))
        fake_device = self._device(card, device, direction)
        if fake_device.busy:
            raise DeviceBusyError(hw_path)
        if fake_device.open_error:
            raise DeviceOpenError(hw_path, fake_device.open_error)

        self.opened.append(hw_path)
        try:
            yield FakePcmHandle(fake_device, hw_path)
        finally:
            self.closed.append(hw_path)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every well-known location at a temporary home directory.

    Keeps tests from reading or writing the real ~/.asoundrc and configuration.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("ASCONFIG_CONFIG", str(tmp_path / "config" / "asconfig.yaml"))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("ASCONFIG_JSON_LOGS", raising=False)
    monkeypatch.delenv("ASCONFIG_PROC_ASOUND", raising=False)
    return home


@pytest.fixture
def make_device() -> type[FakeDevice]:
    """Provide the FakeDevice type for building custom hardware."""
    return FakeDevice


@pytest.fixture
def make_card() -> type[FakeCard]:
    """Provide the FakeCard type for building custom hardware."""
    return FakeCard


@pytest.fixture
def make_backend() -> type[FakeBackend]:
    """Provide the FakeBackend type for building custom hardware."""
    return FakeBackend


@pytest.fixture
def fake_backend() -> FakeBackend:
    """A typical desktop: onboard audio with a busy HDMI output and a USB interface.

    The USB interface plays at a single native rate in S24_3LE only and
    captures in mono.
    """
    return FakeBackend(
        [
            FakeCard(
                index=0,
                id="PCH",
                name="HDA Intel PCH",
                playback=[
                    FakeDevice(0, "ALC892 Analog", "ALC892 Analog", channels=(2, 4, 6, 8)),
                    FakeDevice(3, "HDMI 0", "HDMI 0", busy=True),
                ],
                capture=[FakeDevice(0, "ALC892 Analog", "ALC892 Analog")],
            ),
            FakeCard(
                index=1,
                id="Device",
                name="USB Audio Device",
                playback=[
                    FakeDevice(
                        0,
                        "USB Audio",
                        "USB Audio",
                        formats=("S24_3LE",),
                        rate_min=48000,
                        rate_max=48000,
                    )
                ],
                capture=[
                    FakeDevice(
                        0,
                        "USB Audio",
                        "USB Audio",
                        formats=("S16_LE",),
                        channels=(1,),
                        rate_min=44100,
                        rate_max=48000,
                    )
                ],
            ),
        ]
    )


@pytest.fixture
def make_record() -> Callable[..., CapabilityRecord]:
    """Build capability records with free, negotiated defaults unless overridden."""

    def _make_record(
        direction: StreamDirection = StreamDirection.PLAYBACK,
        card: int = 0,
        device: int = 0,
        **overrides,
    ) -> CapabilityRecord:
        values = {
            "direction": direction,
            "card": card,
            "card_id": "PCH",
            "card_name": "HDA Intel PCH",
            "device": device,
            "device_id": "ALC892 Analog",
            "device_name": "ALC892 Analog",
            "hw_path": f"hw:{card},{device}",
            "availability": Availability.FREE,
            "channels_min": 2,
            "channels_max": 8,
            "rate_min": 44100,
            "rate_max": 192000,
            "formats": ("S16_LE", "S32_LE"),
            "default_format": "S16_LE",
            "default_rate": 48000,
            "default_channels": 2,
        }
        values.update(overrides)
        return CapabilityRecord(**values)

    return _make_record
