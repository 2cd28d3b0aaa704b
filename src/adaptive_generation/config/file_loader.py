"""File-based configuration loading with profile support.

Reads ``[tool.adaptive_generation]`` from the nearest ``pyproject.toml`` and
the user-level ``~/.config/adaptive_generation.toml``. Either file may define
named profiles under a ``profiles`` table.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from adaptive_generation.exceptions import ConfigurationError

HOME_CONFIG_ENV_VAR = "ADAPTIVE_GEN_CONFIG_HOME"
HOME_CONFIG_FILENAME = "adaptive_generation.toml"
TOOL_SECTION = "adaptive_generation"


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file cannot be loaded."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from TOML files with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load ``[tool.adaptive_generation]`` from the nearest pyproject.toml.

        Args:
            project_root: Directory to start searching from; defaults to the
                current directory. Parent directories are searched too.
            profile: Optional profile name under ``profiles``.

        Returns:
            The configuration table, or an empty dict when there is none.

        Raises:
            ConfigFileError: If the file cannot be parsed or the profile is
                missing.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}
        data = self._read_toml(pyproject_path)
        section = data.get("tool", {}).get(TOOL_SECTION, {})
        if not section:
            return {}
        return self._select_profile(section, profile, pyproject_path)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load the user-level configuration file, if present."""
        home_config_path = self.home_config_path()
        if not home_config_path.exists():
            return {}
        data = self._read_toml(home_config_path)
        return self._select_profile(data, profile, home_config_path)

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """Profile names defined in the project and home files."""
        profiles: dict[str, list[str]] = {"project": [], "home": []}
        try:
            pyproject_path = self._find_pyproject_toml(project_root)
            if pyproject_path:
                section = self._read_toml(pyproject_path).get("tool", {}).get(TOOL_SECTION, {})
                profiles["project"] = list(section.get("profiles", {}))
        except ConfigFileError:
            pass
        try:
            home_config_path = self.home_config_path()
            if home_config_path.exists():
                profiles["home"] = list(self._read_toml(home_config_path).get("profiles", {}))
        except ConfigFileError:
            pass
        return profiles

    def home_config_path(self) -> Path:
        override = os.getenv(HOME_CONFIG_ENV_VAR)
        if override:
            return Path(override)
        return Path.home() / ".config" / HOME_CONFIG_FILENAME

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(mode="rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

    def _select_profile(
        self, section: dict[str, Any], profile: str | None, path: Path
    ) -> dict[str, Any]:
        if profile:
            profiles = section.get("profiles", {})
            if profile not in profiles:
                raise ConfigFileError(
                    path,
                    f"Profile '{profile}' not found. Available profiles: {list(profiles)}",
                )
            return dict(profiles[profile])
        config = dict(section)
        config.pop("profiles", None)
        return config

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        current = Path(start_dir or Path.cwd()).resolve()
        while current != current.parent:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            current = current.parent
        return None
