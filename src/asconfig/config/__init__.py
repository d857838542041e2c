"""asconfig configuration package.

This package provides configuration management with:
- Validation of preferred stream parameters and default selections
- YAML parsing and serialization
"""

from .manager import ConfigManager
from .models import AsconfigConfig

__all__ = [
    "AsconfigConfig",
    "ConfigManager",
]
