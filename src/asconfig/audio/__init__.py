"""Audio hardware domain.

This package handles discovery of local ALSA hardware:
- Capability query backends (pyalsaaudio and /proc/asound)
- Per-device probing with default parameter negotiation
- The catalog of playback and capture records exposed for selection
"""

__all__ = []
