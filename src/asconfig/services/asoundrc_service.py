"""Generate and save .asoundrc files from selected capability records.

The service runs planner, emitter and writer in sequence and turns the
user-facing failure categories into a GenerationResult, so that callers
(the CLI, or anything else presenting results to a user) only have to
display a status and a message.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from asconfig.audio.models import CapabilityRecord, StreamDirection
from asconfig.config.models import AsconfigConfig
from asconfig.exceptions import ArtifactWriteError, NoPlaybackSelectedError, PlaybackBusyError
from asconfig.graph.emitter import GraphEmitter
from asconfig.graph.models import InterfaceMode, OptionSet, Resampler
from asconfig.graph.planner import GraphPlanner
from asconfig.system.artifact_writer import ArtifactWriter, WriteOutcome
from asconfig.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    """Outcome category of a generation run."""

    WRITTEN = "written"
    DECLINED = "declined"
    NO_PLAYBACK = "no_playback"
    PLAYBACK_BUSY = "playback_busy"
    IO_ERROR = "io_error"

    @property
    def succeeded(self) -> bool:
        """Written and declined runs are not failures."""
        return self in (GenerationStatus.WRITTEN, GenerationStatus.DECLINED)


@dataclass(frozen=True)
class GenerationResult:
    """What happened to one generation request."""

    status: GenerationStatus
    path: Path
    message: str


class AsoundrcService:
    """Plans, renders and writes .asoundrc files."""

    def __init__(
        self,
        planner: GraphPlanner,
        emitter: GraphEmitter,
        output_path: Path | None = None,
    ):
        """Initialize the service.

        Args:
            planner: Graph planner for stage decisions
            emitter: Renderer for planned stages
            output_path: Destination file, defaults to ~/.asoundrc
        """
        self.planner = planner
        self.emitter = emitter
        self.output_path = output_path or PathResolver().get_asoundrc_path()

    @classmethod
    def from_config(
        cls, config: AsconfigConfig, output_path: Path | None = None
    ) -> "AsoundrcService":
        """Build a service whose planner uses the configured defaults."""
        planner = GraphPlanner(defaults=config.preferred_defaults(), stream_tap=config.stream_tap())
        return cls(planner, GraphEmitter(), output_path)

    @staticmethod
    def default_options(config: AsconfigConfig) -> OptionSet:
        """Option set built from the configured default selections."""
        return OptionSet(
            playback_mode=InterfaceMode.from_plugin_name(
                config.default_playback_interface, StreamDirection.PLAYBACK
            ),
            capture_mode=InterfaceMode.from_plugin_name(
                config.default_capture_interface, StreamDirection.CAPTURE
            ),
            resampler=Resampler(config.default_resampler),
        )

    def render(
        self,
        playback: CapabilityRecord | None,
        capture: CapabilityRecord | None,
        options: OptionSet,
    ) -> str:
        """Plan and render the artifact text without writing it.

        Raises:
            NoPlaybackSelectedError: If no playback record is given
            PlaybackBusyError: If the playback record is not free
            InvalidOptionError: If an option value is not recognised
        """
        stages = self.planner.plan(playback, capture, options)
        return self.emitter.emit(stages)

    def save(
        self,
        playback: CapabilityRecord | None,
        capture: CapabilityRecord | None,
        options: OptionSet,
        confirm_overwrite: Callable[[Path], bool] | None = None,
    ) -> GenerationResult:
        """Generate the artifact and write it to the output path.

        Args:
            playback: Selected playback record
            capture: Selected capture record, if any
            options: User choices
            confirm_overwrite: Asked before replacing an existing file. None
                keeps existing files.

        Returns:
            GenerationResult describing the outcome

        Raises:
            InvalidOptionError: If an option value is not recognised
        """
        try:
            text = self.render(playback, capture, options)
        except NoPlaybackSelectedError as e:
            return self._failure(GenerationStatus.NO_PLAYBACK, e)
        except PlaybackBusyError as e:
            return self._failure(GenerationStatus.PLAYBACK_BUSY, e)

        writer = ArtifactWriter(self.output_path, confirm_overwrite)
        try:
            outcome = writer.write(text)
        except ArtifactWriteError as e:
            return self._failure(GenerationStatus.IO_ERROR, e)

        if outcome is WriteOutcome.DECLINED:
            return GenerationResult(
                GenerationStatus.DECLINED,
                self.output_path,
                f"Kept existing {self.output_path}",
            )
        return GenerationResult(
            GenerationStatus.WRITTEN,
            self.output_path,
            f"{self.output_path} written",
        )

    def _failure(self, status: GenerationStatus, error: Exception) -> GenerationResult:
        logger.info("Not writing %s: %s", self.output_path, status.value)
        return GenerationResult(status, self.output_path, str(error))
