"""Environment variable configuration loading.

Reads ``ADAPTIVE_GEN_*`` variables, optionally seeding them from a ``.env``
file first, and coerces them through `PipelineSettings`.
"""

from functools import cache
import os
from pathlib import Path
from typing import Annotated, Any

from pydantic import TypeAdapter, ValidationError

from .schema import FIELD_ORDER, PipelineSettings, normalize_output_mode

ENV_PREFIX = "ADAPTIVE_GEN_"
ENV_VARS = {f"{ENV_PREFIX}{name.upper()}": name for name in FIELD_ORDER}


@cache
def _field_adapter(field: str) -> TypeAdapter[Any]:
    info = PipelineSettings.model_fields[field]
    if not info.metadata:
        return TypeAdapter(info.annotation)
    return TypeAdapter(Annotated[info.annotation, *info.metadata])


class EnvironmentConfigLoader:
    """Loads configuration from ``ADAPTIVE_GEN_*`` environment variables."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Return the fields explicitly set in the environment.

        Args:
            env_file: Optional ``.env`` file loaded first. Variables already
                present in the environment are not overwritten.

        Raises:
            ValueError: If a variable holds an invalid value.
            FileNotFoundError: If ``env_file`` does not exist.
        """
        if env_file:
            self._load_env_file(env_file)

        env_values = {
            field: os.environ[var] for var, field in ENV_VARS.items() if var in os.environ
        }
        if not env_values:
            return {}

        # Fields are validated one at a time; cross-field rules such as the
        # api_key requirement run once all sources are merged.
        result: dict[str, Any] = {}
        for field, raw in env_values.items():
            if field == "output_mode":
                raw = normalize_output_mode(raw)
            try:
                result[field] = _field_adapter(field).validate_python(raw)
            except ValidationError as e:
                var = f"{ENV_PREFIX}{field.upper()}"
                shown = "<redacted>" if field == "api_key" else raw
                raise ValueError(
                    f"Invalid environment variable value: {var}={shown}. Error: {e}"
                ) from e
        return result

    def _load_env_file(self, env_file: str | Path) -> None:
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")

        try:
            lines = env_path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise ValueError(f"Failed to read environment file {env_path}: {e}") from e

        for line_num, raw in enumerate(lines, 1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                raise ValueError(
                    f"Invalid format at line {line_num}: {line}. Expected KEY=VALUE format."
                )
            key, value = (part.strip() for part in line.split("=", 1))
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            os.environ.setdefault(key, value)

    def get_env_summary(self) -> dict[str, str]:
        """Currently set ``ADAPTIVE_GEN_*`` variables with the API key redacted."""
        return {
            var: "<redacted>" if field == "api_key" else os.environ[var]
            for var, field in ENV_VARS.items()
            if var in os.environ
        }
