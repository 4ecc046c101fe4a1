"""
Configuration management for stackup.

Settings come from an optional YAML file, then environment variables, then
whatever the caller (usually the CLI) passes explicitly.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

DEFAULT_CONFIG_FILE = "stackup.yaml"


@dataclass
class StackupConfig:
    """Settings shared by every stack operation."""

    # AWS session
    region: str = "us-east-1"
    profile: Optional[str] = None

    # Event polling
    poll_interval: float = 5.0
    timeout: float = 3600.0

    # Passed through to CreateStack/UpdateStack
    capabilities: List[str] = field(
        default_factory=lambda: ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]
    )
    tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StackupConfig":
        """Create config from dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    def with_overrides(self, **overrides: Any) -> "StackupConfig":
        """Return a copy with every non-None override applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return self.from_dict(data)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
    if region:
        overrides["region"] = region
    if os.environ.get("AWS_PROFILE"):
        overrides["profile"] = os.environ["AWS_PROFILE"]
    if os.environ.get("STACKUP_POLL_INTERVAL"):
        overrides["poll_interval"] = float(os.environ["STACKUP_POLL_INTERVAL"])
    if os.environ.get("STACKUP_TIMEOUT"):
        overrides["timeout"] = float(os.environ["STACKUP_TIMEOUT"])

    return overrides


def load_config(path: Optional[Union[str, Path]] = None) -> StackupConfig:
    """
    Load configuration.

    Args:
        path: Explicit config file. When omitted, ``stackup.yaml`` in the
            current directory is used if it exists.

    Returns:
        Configuration with environment overrides applied
    """
    data: Dict[str, Any] = {}

    if path is not None:
        config_file = Path(path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
    else:
        config_file = Path.cwd() / DEFAULT_CONFIG_FILE

    if config_file.exists():
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")

    config = StackupConfig.from_dict(data)
    return config.with_overrides(**_env_overrides())
