"""pcm graph planning and rendering.

The planner chooses which stages (hw, plug, dmix, dsnoop, softvol, file,
asym) to chain for a selection; the emitter renders them as .asoundrc blocks.
"""

__all__ = []
