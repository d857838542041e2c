"""Render planned stages as .asoundrc text."""

import logging
from collections.abc import Iterable
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from asconfig.graph.models import StageDescriptor, StageKind
from asconfig.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)

HEADER = "# User asoundrc file written by asconfig\n"


class GraphEmitter:
    """Renders each stage through the template of its kind.

    Emission performs no decisions and no reordering: stages are rendered in
    the order given, parameter values are substituted as they are.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        """Initialize the emitter.

        Args:
            templates_dir: Directory holding one ``<kind>.j2`` template per stage kind.
                Defaults to the templates shipped with the package.
        """
        self.templates_dir = templates_dir or PathResolver().get_stage_templates_dir()
        self.environment = Environment(
            loader=FileSystemLoader(self.templates_dir),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )

    @staticmethod
    def template_name(kind: StageKind) -> str:
        """Return the template file name for a stage kind."""
        return f"{kind.value}.j2"

    def render_stage(self, stage: StageDescriptor) -> str:
        """Render a single stage block, including its leading comments."""
        template = self.environment.get_template(self.template_name(stage.kind))
        return template.render(stage=stage)

    def emit(self, stages: Iterable[StageDescriptor]) -> str:
        """Render the full artifact text for a planned stage sequence."""
        blocks = [self.render_stage(stage) for stage in stages]
        logger.debug("Rendered %d stage block(s)", len(blocks))
        return HEADER + "".join(blocks)
