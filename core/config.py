"""
Configuration for FsBridge.

Settings live in a YAML file under a top-level ``fsbridge`` key. A missing
or unreadable file falls back to the defaults below.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml


def _mapping(value: Any) -> Dict[str, Any]:
    """A YAML section, or an empty one when the key holds anything but a mapping."""
    return value if isinstance(value, dict) else {}


def _number(value: Any, cast: Callable[[Any], Any], default: Any) -> Any:
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


@dataclass
class BridgeConfig:
    """Tunables shared by the filesystem operations."""
    buffer_size: int = 4096
    replace_retries: int = 5
    replace_delay: float = 1.0
    native_chmod: str = "auto"
    audit_log_path: str = "data/audit_log.jsonl"
    config_path: Path = field(default=Path("config.yaml"), repr=False)

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "BridgeConfig":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            BridgeConfig with file values layered over the defaults
        """
        path = Path(config_path)
        data = cls._read(path)
        section = _mapping(data.get("fsbridge", data))

        copy = _mapping(section.get("copy"))
        replace = _mapping(section.get("replace"))
        permissions = _mapping(section.get("permissions"))
        audit = _mapping(section.get("audit"))

        defaults = cls()
        native = permissions.get("native_chmod", defaults.native_chmod)
        if isinstance(native, bool):
            native = "true" if native else "false"

        return cls(
            buffer_size=_number(copy.get("buffer_size"), int, defaults.buffer_size),
            replace_retries=_number(replace.get("retries"), int, defaults.replace_retries),
            replace_delay=_number(replace.get("delay_seconds"), float, defaults.replace_delay),
            native_chmod=str(native).lower(),
            audit_log_path=str(audit.get("log_path", defaults.audit_log_path)),
            config_path=path,
        )

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}
        return data if isinstance(data, dict) else {}

    def native_chmod_enabled(self) -> Optional[bool]:
        """Return the configured native chmod switch, or None to probe."""
        if self.native_chmod == "auto":
            return None
        return self.native_chmod in ("true", "yes", "on", "1")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fsbridge": {
                "copy": {"buffer_size": self.buffer_size},
                "replace": {
                    "retries": self.replace_retries,
                    "delay_seconds": self.replace_delay,
                },
                "permissions": {"native_chmod": self.native_chmod},
                "audit": {"log_path": self.audit_log_path},
            }
        }

    def save(self) -> None:
        """Save the configuration, keeping unrelated keys of the existing file."""
        config = self.to_dict()

        # Merge with existing config
        existing = self._read(self.config_path)
        if existing:
            existing["fsbridge"] = config["fsbridge"]
            config = existing

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False)
