"""System integration: path resolution and artifact writing."""

from .artifact_writer import ArtifactWriter, WriteOutcome
from .path_resolver import PathResolver

__all__ = [
    "ArtifactWriter",
    "PathResolver",
    "WriteOutcome",
]
