import os
from pathlib import Path


class PathResolver:
    """Central authority for all file path resolution in asconfig.

    Uses environment variables for configuration with sensible defaults.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.home_dir = Path.home()
        self.config_dir = Path(os.getenv("XDG_CONFIG_HOME", self.home_dir / ".config")) / "asconfig"
        self.package_dir = Path(__file__).resolve().parent.parent

    def get_asoundrc_path(self) -> Path:
        """Get the path of the user ALSA configuration file written by asconfig."""
        return self.home_dir / ".asoundrc"

    def get_config_path(self) -> Path:
        """Get the path to the asconfig configuration file.

        Checks ASCONFIG_CONFIG environment variable first, then falls back to default.
        """
        config_path = os.getenv("ASCONFIG_CONFIG")
        if config_path:
            return Path(config_path)

        return self.config_dir / "asconfig.yaml"

    def get_templates_dir(self) -> Path:
        """Get the directory of templates shipped with the package."""
        return self.package_dir / "templates"

    def get_stage_templates_dir(self) -> Path:
        """Get the directory holding one template per pcm stage kind."""
        return self.get_templates_dir() / "stages"

    def get_proc_asound_dir(self) -> Path:
        """Get the ALSA procfs directory used to identify cards and devices."""
        return Path(os.getenv("ASCONFIG_PROC_ASOUND", "/proc/asound"))
