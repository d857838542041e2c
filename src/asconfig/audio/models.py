"""Data models for the audio hardware domain."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class StreamDirection(str, Enum):
    """Direction of a pcm stream."""

    PLAYBACK = "playback"
    CAPTURE = "capture"

    @property
    def label(self) -> str:
        """Human-readable label used in log messages."""
        return self.value.capitalize()

    @property
    def proc_suffix(self) -> str:
        """Suffix of the /proc/asound pcm directory for this direction (pcm0p, pcm0c)."""
        return "p" if self is StreamDirection.PLAYBACK else "c"


class Availability(str, Enum):
    """Whether a probed device can be used right now."""

    FREE = "free"
    BUSY = "busy"  # Held by another process
    ERROR = "error"  # Could not be opened or queried

    @property
    def marker(self) -> str:
        """Short in-use marker shown in device listings."""
        return {Availability.FREE: "", Availability.BUSY: "*", Availability.ERROR: "E"}[self]


@dataclass(frozen=True)
class CardInfo:
    """Identity of a sound card as reported by its control interface."""

    index: int
    id: str
    name: str


@dataclass(frozen=True)
class DeviceInfo:
    """Identity of one pcm device under a card."""

    index: int
    id: str
    name: str


@dataclass(frozen=True)
class HardwareParams:
    """Full parameter space reported by an opened pcm device."""

    channels_min: int
    channels_max: int
    rate_min: int
    rate_max: int
    formats: tuple[str, ...]


@dataclass(frozen=True)
class CapabilityRecord:
    """Capabilities of one (card, device) pair for one stream direction."""

    direction: StreamDirection
    card: int
    card_id: str
    card_name: str
    device: int
    device_id: str
    device_name: str
    hw_path: str
    availability: Availability = Availability.FREE
    channels_min: int = 0
    channels_max: int = 0
    rate_min: int = 0
    rate_max: int = 0
    formats: tuple[str, ...] = field(default_factory=tuple)
    default_format: str | None = None
    default_rate: int = 0
    default_channels: int = 0

    @property
    def is_free(self) -> bool:
        """Return True if the device was free when probed."""
        return self.availability is Availability.FREE

    @property
    def formats_csv(self) -> str:
        """Supported formats joined in hardware-reported order."""
        return ", ".join(self.formats)

    @property
    def single_rate(self) -> bool:
        """Return True if the hardware exposes exactly one native sample rate."""
        return self.rate_min > 0 and self.rate_min == self.rate_max

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["direction"] = self.direction.value
        data["availability"] = self.availability.value
        data["formats"] = list(self.formats)
        return data


@dataclass(frozen=True)
class PreferredDefaults:
    """Globally preferred stream parameters, negotiated against each device."""

    rate: int = 48000
    format: str = "S16_LE"
    channels: int = 2
