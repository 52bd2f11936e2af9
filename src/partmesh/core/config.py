"""Configuration for mesh conversion."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

# Optional YAML support
try:
    import yaml
    HAS_YAML = True
except ImportError:
    yaml = None
    HAS_YAML = False


@dataclass
class ConversionConfig:
    """Options controlling a conversion.

    Attributes:
        default_attribute: Attribute given to cells and boundary facets whose
            component has no tag
        verify_numbering: Rebuild the edge and face tables from the finalized
            mesh and check that every rebuilt id equals the mesh's own index
            before transferring nodes. When False the mesh's tables are used
            as they are
    """

    default_attribute: int = 1
    verify_numbering: bool = True

    def __post_init__(self) -> None:
        """Validate the configuration after initialization."""
        if isinstance(self.default_attribute, bool) or not isinstance(self.default_attribute, int):
            raise ValueError(f"default_attribute must be an integer, got {self.default_attribute!r}")
        if not isinstance(self.verify_numbering, bool):
            raise ValueError(f"verify_numbering must be a boolean, got {self.verify_numbering!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversionConfig':
        """Create configuration from dictionary."""
        unknown = set(data) - {'default_attribute', 'verify_numbering'}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ConversionConfig':
        """Load configuration from YAML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                if not HAS_YAML:
                    raise ImportError(
                        "YAML support not available. Install PyYAML with: pip install PyYAML\n"
                        "Or convert your configuration to JSON format."
                    )
                data = yaml.safe_load(f) or {}
            elif config_path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'default_attribute': self.default_attribute,
            'verify_numbering': self.verify_numbering,
        }

    def save(self, config_path: Union[str, Path]) -> None:
        """Save configuration to file."""
        config_path = Path(config_path)

        with open(config_path, 'w') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                if not HAS_YAML:
                    raise ImportError(
                        "YAML support not available. Install PyYAML with: pip install PyYAML\n"
                        "Or save as JSON format instead."
                    )
                yaml.dump(self.to_dict(), f, default_flow_style=False)
            elif config_path.suffix.lower() == '.json':
                json.dump(self.to_dict(), f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")
