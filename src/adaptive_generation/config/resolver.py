"""Configuration resolution with precedence handling.

Precedence, highest first: programmatic > environment > project file >
home file > defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from adaptive_generation.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import FIELD_ORDER, PipelineSettings
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV_VAR = "ADAPTIVE_GEN_PROFILE"


class ConfigResolver:
    """Merges configuration sources into a validated `ResolvedConfig`."""

    def __init__(self) -> None:
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            programmatic: Overrides with the highest precedence.
            profile: Profile name to load from files; defaults to
                ``ADAPTIVE_GEN_PROFILE``.
            use_env_file: Optional ``.env`` file to load.
            project_root: Directory to search for pyproject.toml.

        Raises:
            ConfigurationError: If a file is malformed, an environment value
                is invalid, or the merged result fails validation.
        """
        if profile is None:
            profile = os.getenv(PROFILE_ENV_VAR)

        merged: dict[str, Any] = PipelineSettings.model_construct().to_dict()
        origin: dict[str, ConfigOrigin] = dict.fromkeys(merged, "default")

        def apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:
                    merged[field] = value
                    origin[field] = source
                else:
                    log.debug("Ignoring unknown config field %r from %s", field, source)

        try:
            apply(self.file_loader.load_home_config(profile=profile), "file")
        except ConfigFileError as e:
            # A broken home file should not block a project that configures itself.
            log.warning("Skipping home configuration: %s", e)

        try:
            apply(
                self.file_loader.load_project_config(
                    project_root=project_root, profile=profile
                ),
                "file",
            )
        except ConfigFileError:
            if profile is None:
                raise
            log.warning("Profile %r not usable in project configuration", profile)

        try:
            apply(self.env_loader.load_env_config(env_file=use_env_file), "env")
        except (ValueError, FileNotFoundError) as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e

        apply(programmatic or {}, "programmatic")

        try:
            validated = PipelineSettings(**merged).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        resolved = ResolvedConfig(
            **{field: validated[field] for field in FIELD_ORDER}, origin=origin
        )
        log.debug("Resolved configuration: %s", resolved)
        return resolved

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        return self.file_loader.list_available_profiles(project_root)
