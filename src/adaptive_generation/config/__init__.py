"""Configuration for the adaptive generation pipeline.

Configuration is resolved once from every source, frozen, and then passed
explicitly to the services that need it:

    >>> from adaptive_generation.config import resolve_config
    >>> config = resolve_config({"max_attempts": 2}).to_frozen()
"""

from pathlib import Path
from typing import Any

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import PipelineSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    project_root: Path | None = None,
    use_env_file: str | Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration with precedence and origin tracking."""
    return ConfigResolver().resolve(
        programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "EnvironmentConfigLoader",
    "FileConfigLoader",
    "FrozenConfig",
    "PipelineSettings",
    "ResolvedConfig",
    "SourceMap",
    "resolve_config",
]
