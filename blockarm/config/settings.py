"""
Runtime settings management
Handles loading/saving user preferences
"""

import os
import logging
import yaml
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, asdict, fields

from .defaults import EXECUTION_CONFIG, SERIAL_DEFAULTS

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Runtime settings that can be modified by user"""

    # Connection
    port: Optional[str] = None
    baudrate: int = SERIAL_DEFAULTS["baudrate"]
    robot: str = "so-arm101"
    simulate: bool = False

    # Execution
    settle_delay: float = EXECUTION_CONFIG["inter_block_delay"]
    home_before_run: bool = False
    max_steps: int = EXECUTION_CONFIG["max_steps"]

    # Logging
    log_level: str = "INFO"

    @classmethod
    def load(cls, filepath: Optional[str] = None) -> "Settings":
        """Load settings from YAML file"""
        if filepath is None:
            filepath = cls._get_default_path()

        if os.path.exists(filepath):
            try:
                with open(filepath, 'r') as f:
                    data = yaml.safe_load(f) or {}
                known = {f.name for f in fields(cls)}
                unknown = set(data) - known
                if unknown:
                    logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
                return cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning(f"Could not load settings: {e}")

        return cls()  # Return defaults

    def save(self, filepath: Optional[str] = None):
        """Save settings to YAML file"""
        if filepath is None:
            filepath = self._get_default_path()

        # Ensure directory exists
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)

        with open(filepath, 'w') as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False)

    @staticmethod
    def _get_default_path() -> str:
        """Get default settings path"""
        home = Path.home()
        return str(home / ".blockarm" / "settings.yaml")

    def reset_to_defaults(self):
        """Reset all settings to defaults"""
        default = Settings()
        for field in fields(default):
            setattr(self, field.name, getattr(default, field.name))
