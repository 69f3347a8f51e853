"""
Configuration management for gha_inspector.
"""

import os
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_FILENAME = ".gha_inspector.yml"


class GhConfig(BaseModel):
    """How to invoke the gh executable."""
    executable: str = "gh"
    timeout: float = 120.0


class PatternConfig(BaseModel):
    """An extra failure pattern to look for in logs."""
    name: str
    description: str
    regex: str

    @field_validator("regex")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression {value!r}: {e}") from e
        return value


class AnalysisConfig(BaseModel):
    """Configuration for failure log analysis."""
    max_excerpts: int = Field(default=3, ge=0)
    show_logs: bool = True
    extra_patterns: List[PatternConfig] = Field(default_factory=list)


class Config(BaseModel):
    """Main configuration class for gha_inspector."""

    # Default number of runs to list
    default_limit: int = Field(default=10, ge=1)

    # Repository override (owner/name); otherwise taken from the origin remote
    repo: Optional[str] = None

    gh: GhConfig = Field(default_factory=GhConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # GitHub settings
    github_token: Optional[str] = None
    api_url: str = "https://api.github.com"

    @field_validator("repo")
    @classmethod
    def _owner_slash_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not re.fullmatch(r"[^/\s]+/[^/\s]+", value):
            raise ValueError(f"repo must look like owner/name, got {value!r}")
        return value


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment variables.

    Priority order:
    1. Provided config_path
    2. .gha_inspector.yml in current directory
    3. .gha_inspector.yml in home directory
    4. Default configuration
    """
    config_data = {}

    if config_path is None:
        current_dir_config = Path.cwd() / CONFIG_FILENAME
        home_dir_config = Path.home() / CONFIG_FILENAME

        if current_dir_config.exists():
            config_path = current_dir_config
        elif home_dir_config.exists():
            config_path = home_dir_config

    if config_path and config_path.exists():
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")

    env_overrides = {
        "github_token": os.getenv("GITHUB_TOKEN"),
        "gh.executable": os.getenv("GH_PATH"),
        "api_url": os.getenv("GITHUB_API_URL"),
    }

    for key, value in env_overrides.items():
        if value is not None:
            _set_nested_dict(config_data, key, value)

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def _set_nested_dict(d: dict, key: str, value: str) -> None:
    """Set a nested dictionary value using dot notation."""
    keys = key.split(".")
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = value


def get_default_config() -> Config:
    """Get default configuration for documentation/examples."""
    return Config()
