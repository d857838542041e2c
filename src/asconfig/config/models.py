"""Configuration models for asconfig.

This module contains the Pydantic models for the settings that shape
probing and .asoundrc generation.
"""

from pydantic import BaseModel, Field, field_validator

from asconfig.audio.models import PreferredDefaults, StreamDirection
from asconfig.graph.models import InterfaceMode, Resampler
from asconfig.graph.planner import DEFAULT_STREAM_COMMAND, StreamTapSettings


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "WARNING"
    json_logs: bool = False
    include_caller: bool = False  # Include file:line info (useful for debugging)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate the log level name."""
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{v}'")
        return v.upper()


class AsconfigConfig(BaseModel):
    """Configuration settings for asconfig."""

    # Preferred parameters, tested on every device; rejected values fall back
    # to the minimum rate, first supported format and minimum channel count.
    default_rate: int = 48000
    default_format: str = "S16_LE"
    default_channels: int = 2

    # Selections used when the user does not choose
    default_resampler: str = Resampler.SPEEXRATE_MEDIUM.value
    default_playback_interface: str = "plug"  # hw, plug or dmix
    default_capture_interface: str = "plug"  # hw, plug or dsnoop

    # Stream tap (alsa file plugin)
    stream_input_format: str = "raw"  # Output format of the file plugin: raw or wav
    stream_command: str = DEFAULT_STREAM_COMMAND  # File name, or "|" and a pipe command

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("default_rate", "default_channels")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Preferred rate and channel count must be positive."""
        if v <= 0:
            raise ValueError(f"Must be a positive integer, got {v}")
        return v

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Preferred format must be a non-empty ALSA format name."""
        if not v.strip():
            raise ValueError("Default format cannot be empty")
        return v.strip()

    @field_validator("default_resampler")
    @classmethod
    def validate_resampler(cls, v: str) -> str:
        """Validate the resampler name."""
        valid = [resampler.value for resampler in Resampler]
        if v not in valid:
            raise ValueError(f"Invalid resampler '{v}'. Must be one of: {', '.join(valid)}")
        return v

    @field_validator("default_playback_interface")
    @classmethod
    def validate_playback_interface(cls, v: str) -> str:
        """Validate the playback interface plugin name."""
        InterfaceMode.from_plugin_name(v, StreamDirection.PLAYBACK)
        return v

    @field_validator("default_capture_interface")
    @classmethod
    def validate_capture_interface(cls, v: str) -> str:
        """Validate the capture interface plugin name."""
        InterfaceMode.from_plugin_name(v, StreamDirection.CAPTURE)
        return v

    @field_validator("stream_input_format")
    @classmethod
    def validate_stream_input_format(cls, v: str) -> str:
        """The alsa file plugin writes raw or wav."""
        if v not in {"raw", "wav"}:
            raise ValueError(f"Invalid stream input format '{v}'. Must be 'raw' or 'wav'.")
        return v

    def preferred_defaults(self) -> PreferredDefaults:
        """Preferred parameters used by probing and planning."""
        return PreferredDefaults(
            rate=self.default_rate, format=self.default_format, channels=self.default_channels
        )

    def stream_tap(self) -> StreamTapSettings:
        """Settings for the file-sink tap."""
        return StreamTapSettings(input_format=self.stream_input_format, command=self.stream_command)
