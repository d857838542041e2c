"""Plan the pcm graph written to .asoundrc.

The planner turns a selected playback record, an optional capture record and
an OptionSet into an ordered list of StageDescriptors. It makes every routing
decision; rendering the list is left to the emitter.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from asconfig.audio.models import CapabilityRecord, PreferredDefaults
from asconfig.exceptions import InvalidOptionError, NoPlaybackSelectedError, PlaybackBusyError
from asconfig.graph.models import (
    InterfaceMode,
    OptionSet,
    Resampler,
    StageDescriptor,
    StageKind,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# Stage names
PLAYBACK_STAGE = "playback"
CAPTURE_STAGE = "capture"
MATCH_STAGE = "match"
MATCH_CAPTURE_STAGE = "matchCapture"
SNOOP_CAPTURE_STAGE = "snoopCapture"
MIX_STAGE = "mix"
STREAM_STAGE = "stream"
STREAM_VOLUME_STAGE = "streamvol"
DEFAULT_STAGE = "default"
FORCED_PARAMS_STAGE = "playback_params"
RATE_CONVERTER_STAGE = "rate_converter"
MIXER_CONTROL_STAGE = "ctl_default"

# pcm names provided by ALSA itself
NULL_PCM = "null"
BUILTIN_PCMS = frozenset({NULL_PCM})

MIXER_IPC_KEY = 16022021
CAPTURE_SHARE_IPC_KEY = 17022021
CAPTURE_SHARE_BINDINGS = ((0, 0), (1, 1))

DEFAULT_STREAM_COMMAND = (
    "| lame -r --bitwidth %b -s %r -m j -q6 --cbr -b 192 - - "
    "| /usr/local/bin/ezstream -c /path/to/config"
)

_PLAYBACK_MODE_NOTES = {
    InterfaceMode.DIRECT: (
        "Direct hardware access selected - no software conversions.",
        "Only one application can use the playback device at a time.",
        "Playback sample rates / formats / channels *MUST* match",
        "the cards native ranges, otherwise playback will fail.",
    ),
    InterfaceMode.ADAPTED: (
        "Access hardware via plug: The playback format (bit depth)",
        "may be changed and / or resampling may take place in order",
        "to match the hardware requirements. Only one application",
        "can use the playback device at a time.",
    ),
    InterfaceMode.SHARED: (
        "Allow playback from multiple applications at once. Input",
        "streams may be converted to a common format (bit depth)",
        "and sample rate using plug (dmix doesn't do conversions).",
    ),
}

_CAPTURE_MODE_NOTES = {
    InterfaceMode.DIRECT: (
        "Direct hardware access selected - no software conversions.",
        "Only one application can use the capture device at a time.",
        "Capture sample rates / formats / channels *MUST* match",
        "the cards native ranges, otherwise capturing will fail.",
    ),
    InterfaceMode.ADAPTED: (
        "Access hardware via plug: The capture format (bit depth)",
        "may be changed and / or resampling may take place in order",
        "to match the hardware requirements. Only one application",
        "can use the capture device at a time.",
    ),
    InterfaceMode.SHARED: (
        "Allow multiple applications to capture at once. Output",
        "streams may be converted to a common format (bit depth)",
        "and sample rate using plug (dsnoop doesn't do conversions).",
    ),
}


@dataclass(frozen=True)
class StreamTapSettings:
    """How the file-sink tap writes the duplicated stream."""

    input_format: str = "raw"  # "raw" or "wav"
    command: str = DEFAULT_STREAM_COMMAND  # File name, or "|" followed by a pipe command


@dataclass(frozen=True)
class _StreamParams:
    format: str
    rate: int
    channels: int


class _PlanBuilder:
    """Accumulates stages with unique names and planner-assigned ranks."""

    def __init__(self) -> None:
        self.stages: list[StageDescriptor] = []
        self._names: set[str] = set()
        self._pending_notes: list[str] = []

    def note(self, *lines: str) -> None:
        """Queue comment lines for the next stage added."""
        self._pending_notes.extend(lines)

    def add(
        self, name: str, kind: StageKind, params: dict[str, Any], notes: tuple[str, ...] = ()
    ) -> str:
        if name in self._names:
            raise InvalidOptionError(f"Duplicate stage name '{name}' in plan")
        self._names.add(name)
        self.stages.append(
            StageDescriptor(
                name=name,
                kind=kind,
                rank=len(self.stages),
                params=params,
                notes=(*self._pending_notes, *notes),
            )
        )
        self._pending_notes = []
        return name

    def finish(self) -> list[StageDescriptor]:
        """Check every reference resolves and return the stages in rank order."""
        known = self._names | BUILTIN_PCMS
        for stage in self.stages:
            for reference in stage.references:
                if reference not in known:
                    raise InvalidOptionError(
                        f"Stage '{stage.name}' refers to unknown stage '{reference}'"
                    )
        return list(self.stages)


class GraphPlanner:
    """Decides which stages to chain, in what order and with what parameters."""

    def __init__(
        self,
        defaults: PreferredDefaults | None = None,
        stream_tap: StreamTapSettings | None = None,
    ) -> None:
        """Initialize the planner.

        Args:
            defaults: Fallbacks for records whose negotiated fields are unset
            stream_tap: Format and command used by the file-sink tap
        """
        self.defaults = defaults or PreferredDefaults()
        self.stream_tap = stream_tap or StreamTapSettings()

    def plan(
        self,
        playback: CapabilityRecord | None,
        capture: CapabilityRecord | None,
        options: OptionSet,
    ) -> list[StageDescriptor]:
        """Plan the stage sequence for one generation run.

        Args:
            playback: Selected playback record (required, must be free)
            capture: Selected capture record, if any
            options: User choices

        Returns:
            Stages in emission order

        Raises:
            NoPlaybackSelectedError: If no playback record is given
            PlaybackBusyError: If the playback record is not free
            InvalidOptionError: If an option value is not recognised
        """
        if playback is None:
            raise NoPlaybackSelectedError()
        if not playback.is_free:
            raise PlaybackBusyError(playback.hw_path)

        playback_mode = _coerce(InterfaceMode, options.playback_mode, "playback interface")
        capture_mode = _coerce(InterfaceMode, options.capture_mode, "capture interface")
        resampler = _coerce(Resampler, options.resampler, "resampler")

        builder = _PlanBuilder()
        capture_endpoint = self._plan_capture(builder, capture, capture_mode)
        self._plan_common(builder, playback, resampler)
        playback_endpoint = self._plan_playback(builder, playback, playback_mode, options)

        builder.add(
            DEFAULT_STAGE,
            StageKind.DEFAULT_SELECTOR,
            {"playback": playback_endpoint, "capture": capture_endpoint},
        )

        stages = builder.finish()
        logger.debug(
            "Planned %d stage(s): playback=%s capture=%s",
            len(stages),
            playback_endpoint,
            capture_endpoint,
        )
        return stages

    def _stream_params(self, record: CapabilityRecord) -> _StreamParams:
        """Negotiated parameters of a record, falling back to the preferred defaults."""
        return _StreamParams(
            format=record.default_format or self.defaults.format,
            rate=record.default_rate or self.defaults.rate,
            channels=record.default_channels or self.defaults.channels,
        )

    def _plan_capture(
        self, builder: _PlanBuilder, capture: CapabilityRecord | None, mode: InterfaceMode
    ) -> str | None:
        """Plan the capture chain and return the externally referenced capture stage."""
        if capture is None:
            return None
        if not capture.is_free:
            logger.warning(
                "Capture device %s is %s: not configuring capture",
                capture.hw_path,
                capture.availability.value,
            )
            return None

        builder.add(
            CAPTURE_STAGE,
            StageKind.HARDWARE,
            {"card": capture.card, "device": capture.device},
            notes=("Selected capture device",),
        )
        builder.note(*_CAPTURE_MODE_NOTES[mode])

        if mode is InterfaceMode.DIRECT:
            return CAPTURE_STAGE

        if mode is InterfaceMode.ADAPTED:
            return builder.add(MATCH_CAPTURE_STAGE, StageKind.ADAPTER, {"slave": CAPTURE_STAGE})

        if mode is InterfaceMode.SHARED:
            stream = self._stream_params(capture)
            builder.add(
                SNOOP_CAPTURE_STAGE,
                StageKind.CAPTURE_SHARE,
                {
                    "slave": CAPTURE_STAGE,
                    "ipc_key": CAPTURE_SHARE_IPC_KEY,
                    "period_size": 1024,
                    "buffer_size": 4096,
                    "format": stream.format,
                    "rate": stream.rate,
                    "channels": stream.channels,
                    "periods": 0,
                    "period_time": 0,
                    "bindings": CAPTURE_SHARE_BINDINGS,
                },
            )
            return builder.add(
                MATCH_CAPTURE_STAGE, StageKind.ADAPTER, {"slave": SNOOP_CAPTURE_STAGE}
            )

        raise InvalidOptionError(f"Unknown capture interface mode: {mode!r}")

    def _plan_common(
        self, builder: _PlanBuilder, playback: CapabilityRecord, resampler: Resampler
    ) -> None:
        """Plan the playback hardware stage and the declarations every graph carries."""
        builder.add(
            PLAYBACK_STAGE,
            StageKind.HARDWARE,
            {"card": playback.card, "device": playback.device},
            notes=("Selected playback device",),
        )

        if playback.single_rate:
            stream = self._stream_params(playback)
            builder.add(
                FORCED_PARAMS_STAGE,
                StageKind.FORCED_PARAMS,
                {
                    "target": PLAYBACK_STAGE,
                    "format": stream.format,
                    "channels": stream.channels,
                    "rate": playback.rate_min,
                },
            )

        builder.add(RATE_CONVERTER_STAGE, StageKind.RATE_CONVERTER, {"converter": resampler.value})
        builder.add(MIXER_CONTROL_STAGE, StageKind.MIXER_CONTROL, {"card": playback.card})

    def _plan_playback(
        self,
        builder: _PlanBuilder,
        playback: CapabilityRecord,
        mode: InterfaceMode,
        options: OptionSet,
    ) -> str:
        """Plan the playback chain and return the stage the default selector plays to."""
        builder.note(*_PLAYBACK_MODE_NOTES[mode])

        if mode is InterfaceMode.DIRECT:
            return self._plan_tap(builder, PLAYBACK_STAGE, options)

        if mode is InterfaceMode.ADAPTED:
            builder.add(MATCH_STAGE, StageKind.ADAPTER, {"slave": PLAYBACK_STAGE})
            return self._plan_tap(builder, MATCH_STAGE, options)

        if mode is InterfaceMode.SHARED:
            return self._plan_shared_playback(builder, playback, options)

        raise InvalidOptionError(f"Unknown playback interface mode: {mode!r}")

    def _plan_tap(self, builder: _PlanBuilder, endpoint: str, options: OptionSet) -> str:
        """Add the file-sink tap in front of an endpoint, if enabled.

        A default tap plays through to the endpoint and replaces it as the
        default sink; otherwise the tap discards its audio into the null pcm.
        """
        if not options.stream_enabled:
            return endpoint

        slave = endpoint if options.stream_default else NULL_PCM
        self._add_file_tap(builder, slave)
        return STREAM_STAGE if options.stream_default else endpoint

    def _plan_shared_playback(
        self, builder: _PlanBuilder, playback: CapabilityRecord, options: OptionSet
    ) -> str:
        """Plan tap, adapter and mixer for multi-client playback.

        The mixer only accepts a hardware slave, so the tap is routed into the
        adapter in front of the mixer rather than between mixer and hardware.
        """
        if options.stream_enabled:
            builder.add(
                STREAM_VOLUME_STAGE,
                StageKind.VOLUME_TAP,
                {"slave": MATCH_STAGE, "control": "Stream", "card": playback.card},
                notes=(
                    "NOTE: dmix can only output to a hardware device.",
                    "To use the stream pcm, the program whose output",
                    f"is to be streamed must be told to use the {STREAM_STAGE} pcm",
                    "e.g.",
                    f"   mplayer -ao alsa:device={STREAM_STAGE}",
                    f"   chromium --alsa-output-device='{STREAM_STAGE}'",
                    f"   AUDIODEV={STREAM_STAGE} ffplay",
                ),
            )
            self._add_file_tap(builder, STREAM_VOLUME_STAGE)

        stream = self._stream_params(playback)
        builder.add(MATCH_STAGE, StageKind.ADAPTER, {"slave": MIX_STAGE})
        builder.add(
            MIX_STAGE,
            StageKind.MIXER,
            {
                "slave": PLAYBACK_STAGE,
                "ipc_key": MIXER_IPC_KEY,
                "format": stream.format,
                "channels": stream.channels,
                "rate": stream.rate,
            },
        )

        if options.stream_enabled and options.stream_default:
            logger.debug("Stream tap is the default sink; it reaches %s via the mixer", MIX_STAGE)
            return STREAM_STAGE
        return MATCH_STAGE

    def _add_file_tap(self, builder: _PlanBuilder, slave: str) -> str:
        return builder.add(
            STREAM_STAGE,
            StageKind.FILE_TAP,
            {
                "slave": slave,
                "format": self.stream_tap.input_format,
                "file": self.stream_tap.command,
            },
        )


def _coerce(enum_type: type[E], value: object, label: str) -> E:
    """Return value as a member of enum_type, or raise InvalidOptionError."""
    try:
        return enum_type(value)
    except ValueError as e:
        raise InvalidOptionError(f"Invalid {label}: {value!r}") from e
