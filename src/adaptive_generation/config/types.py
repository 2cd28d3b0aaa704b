"""Configuration data types: resolve once, freeze, then pass along."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

from .schema import FIELD_ORDER, OutputModeSetting

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    ``origin`` records where each field's value came from.
    """

    api_key: str | None
    model: str
    use_real_api: bool
    max_attempts: int
    logographic_multiplier: float
    output_mode: OutputModeSetting
    slow_response_ms: int
    fallback_on_exhaustion: bool
    max_response_chars: int

    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        return f"ResolvedConfig({_render_fields(self)}, origin={dict(self.origin)!r})"

    def __repr__(self) -> str:
        return self.__str__()

    def to_frozen(self) -> "FrozenConfig":
        """Drop audit metadata and return the immutable pipeline config."""
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with overrides applied and marked programmatic.

        Unknown field names are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Redacted report showing the origin of each field."""
        lines = []
        for field in FIELD_ORDER:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field == "api_key":
                shown = f"{origin}:None" if value is None else f"{origin}:<redacted>"
            elif origin == "env":
                shown = f"env:ADAPTIVE_GEN_{field.upper()}={value}"
            else:
                shown = f"{origin}:{value}"
            lines.append(f"{field}: {shown}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to pipeline services.

    Services read fields as attributes; assignment raises.
    """

    api_key: str | None = None
    model: str = "gemini-2.0-flash"
    use_real_api: bool = False
    max_attempts: int = 3
    logographic_multiplier: float = 1.5
    output_mode: OutputModeSetting = "free_text"
    slow_response_ms: int = 45_000
    fallback_on_exhaustion: bool = True
    max_response_chars: int = 1_000_000

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        return f"FrozenConfig({_render_fields(self)})"

    def __repr__(self) -> str:
        return self.__str__()


def _render_fields(config: object) -> str:
    parts = []
    for field in FIELD_ORDER:
        value = getattr(config, field)
        if field == "api_key":
            value = "[REDACTED]" if value else None
        parts.append(f"{field}={value!r}")
    return ", ".join(parts)
