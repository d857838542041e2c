"""Exception types raised while scanning hardware and generating .asoundrc files."""


class AsconfigError(Exception):
    """Base class for all asconfig errors."""


class ControlAccessError(AsconfigError):
    """The control interface of a card (or a device's pcm info) could not be read."""

    def __init__(self, hw_path: str, reason: str):
        self.hw_path = hw_path
        self.reason = reason
        super().__init__(f"Error opening {hw_path}: {reason}")


class DeviceBusyError(AsconfigError):
    """The pcm device is held by another process."""

    def __init__(self, hw_path: str):
        self.hw_path = hw_path
        super().__init__(f"Device {hw_path} is busy")


class DeviceOpenError(AsconfigError):
    """The pcm device could not be opened for a reason other than being busy."""

    def __init__(self, hw_path: str, reason: str):
        self.hw_path = hw_path
        self.reason = reason
        super().__init__(f"Error opening pcm device {hw_path}: {reason}")


class HardwareQueryError(AsconfigError):
    """The device opened but its parameter space could not be queried."""

    def __init__(self, hw_path: str, reason: str):
        self.hw_path = hw_path
        self.reason = reason
        super().__init__(f"Error obtaining device {hw_path} parameters: {reason}")


class PlanningError(AsconfigError):
    """A graph could not be planned from the given selection."""


class NoPlaybackSelectedError(PlanningError):
    """No playback record was supplied."""

    def __init__(self) -> None:
        super().__init__(
            "No selected playback device: please select a playback device: not writing asoundrc!"
        )


class PlaybackBusyError(PlanningError):
    """The selected playback record is not free."""

    def __init__(self, hw_path: str):
        self.hw_path = hw_path
        super().__init__(
            f"The selected playback device {hw_path} is currently in use (blocked): "
            "not writing asoundrc!"
        )


class InvalidOptionError(PlanningError):
    """An option value (or the plan built from it) is not one the planner understands."""


class ArtifactWriteError(AsconfigError):
    """The destination file could not be opened or written."""

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error opening {path} for writing: {reason}")
