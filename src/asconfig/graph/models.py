"""Models for the planned pcm graph."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from asconfig.audio.models import StreamDirection

# Plugin names offered for each interface mode, per direction
_PLUGIN_NAMES = {
    StreamDirection.PLAYBACK: ("hw", "plug", "dmix"),
    StreamDirection.CAPTURE: ("hw", "plug", "dsnoop"),
}


class InterfaceMode(str, Enum):
    """How clients reach the hardware for one direction."""

    DIRECT = "direct"  # Straight to hardware, single exclusive client
    ADAPTED = "adapted"  # Format/rate conversion interposed
    SHARED = "shared"  # Multi-client mixing (playback) or sharing (capture)

    def plugin_name(self, direction: StreamDirection) -> str:
        """Return the ALSA plugin name of this mode for a direction."""
        return _PLUGIN_NAMES[direction][list(InterfaceMode).index(self)]

    @classmethod
    def from_plugin_name(cls, name: str, direction: StreamDirection) -> "InterfaceMode":
        """Resolve an ALSA plugin name (hw, plug, dmix, dsnoop) to a mode.

        Raises:
            ValueError: If the name is not offered for the direction
        """
        names = _PLUGIN_NAMES[direction]
        if name not in names:
            raise ValueError(
                f"Invalid {direction.value} interface '{name}'. Must be one of: {', '.join(names)}"
            )
        return list(cls)[names.index(name)]

    @classmethod
    def plugin_names(cls, direction: StreamDirection) -> tuple[str, ...]:
        """Return the plugin names offered for a direction, in mode order."""
        return _PLUGIN_NAMES[direction]


class Resampler(str, Enum):
    """Rate converters selectable as the ALSA default."""

    SPEEXRATE = "speexrate"
    SPEEXRATE_MEDIUM = "speexrate_medium"
    SPEEXRATE_BEST = "speexrate_best"


class StageKind(str, Enum):
    """Kind of a planned stage; selects the template used to render it."""

    HARDWARE = "hw"
    ADAPTER = "plug"
    MIXER = "dmix"
    CAPTURE_SHARE = "dsnoop"
    VOLUME_TAP = "softvol"
    FILE_TAP = "file"
    DEFAULT_SELECTOR = "asym"
    FORCED_PARAMS = "forced_params"
    RATE_CONVERTER = "rate_converter"
    MIXER_CONTROL = "ctl"


# Parameter keys that name another stage
REFERENCE_KEYS = ("slave", "target", "playback", "capture")


@dataclass(frozen=True)
class StageDescriptor:
    """One named node of the planned graph."""

    name: str
    kind: StageKind
    rank: int
    params: dict[str, Any] = field(default_factory=dict)
    notes: tuple[str, ...] = ()  # Comment lines written before the block

    @property
    def references(self) -> list[str]:
        """Names of the stages this stage refers to."""
        return [self.params[key] for key in REFERENCE_KEYS if self.params.get(key)]


@dataclass(frozen=True)
class OptionSet:
    """User choices consumed by one planning run."""

    playback_mode: InterfaceMode = InterfaceMode.ADAPTED
    capture_mode: InterfaceMode = InterfaceMode.ADAPTED
    resampler: Resampler = Resampler.SPEEXRATE_MEDIUM
    stream_enabled: bool = False
    stream_default: bool = False
