"""Storyboard validation.

Lenient validation fails only when the ``scenes`` collection is missing or
is not a list. Everything else is filled from the field tables in
`adaptive_generation.response.schema`, and each substitution is reported as
a warning. Strict validation is available for callers that need a hard
guarantee and raises instead.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
import math
import typing

from pydantic import ValidationError

from adaptive_generation.core.types import ValidatedPayload
from adaptive_generation.exceptions import PayloadValidationError

from .schema import (
    SCENE_FIELDS,
    SCENES_FIELD,
    TOP_LEVEL_FIELDS,
    FieldSpec,
    StoryboardModel,
    scene_template,
)

log = logging.getLogger(__name__)

_MISSING = object()


def _lookup(data: Mapping[str, typing.Any], spec: FieldSpec) -> tuple[str | None, typing.Any]:
    for key in (spec.name, *spec.aliases):
        if key in data:
            return key, data[key]
    return None, _MISSING


def _is_blank(value: typing.Any) -> bool:
    return value is _MISSING or value is None or (isinstance(value, str) and not value.strip())


def _reported_confidence(reported: typing.Any) -> float:
    """A payload's own confidence if it is a finite number, else 1.0."""
    if not isinstance(reported, int | float) or isinstance(reported, bool):
        return 1.0
    try:
        value = float(reported)
    except (OverflowError, ValueError):
        return 1.0
    return value if math.isfinite(value) else 1.0


def _fill_field(
    target: dict[str, typing.Any],
    source: Mapping[str, typing.Any],
    spec: FieldSpec,
    *,
    index: int,
    label: str,
    warnings: list[str],
) -> None:
    """Resolve one field into ``target``, defaulting and warning as needed."""
    key, value = _lookup(source, spec)
    if key is not None and key != spec.name:
        target.pop(key, None)
        warnings.append(f"{label}field '{key}' read as '{spec.name}'")

    if _is_blank(value):
        target[spec.name] = spec.default(index)
        warnings.append(f"Missing {label}{spec.name} - using default")
        return

    match spec.kind:
        case "text":
            if isinstance(value, str):
                target[spec.name] = value
            elif isinstance(value, int | float) and not isinstance(value, bool):
                target[spec.name] = str(value)
                warnings.append(f"{label}{spec.name} was not text - converted")
            else:
                target[spec.name] = spec.default(index)
                warnings.append(f"Invalid {label}{spec.name} - using default")
        case "text_list":
            if isinstance(value, str):
                target[spec.name] = [value]
                warnings.append(f"{label}{spec.name} was a single value - wrapped in a list")
            elif isinstance(value, Sequence) and not isinstance(value, bytes | bytearray):
                target[spec.name] = [str(v) for v in value if not _is_blank(v)]
            else:
                target[spec.name] = spec.default(index)
                warnings.append(f"Invalid {label}{spec.name} - using default")
        case "list":
            if isinstance(value, list):
                target[spec.name] = value
            else:
                target[spec.name] = spec.default(index)
                warnings.append(f"Invalid {label}{spec.name} - using default")


class SchemaValidator:
    """Validates storyboard candidates against the field tables."""

    def __init__(
        self,
        top_level_fields: tuple[FieldSpec, ...] = TOP_LEVEL_FIELDS,
        scene_fields: tuple[FieldSpec, ...] = SCENE_FIELDS,
    ) -> None:
        self.top_level_fields = top_level_fields
        self.scene_fields = scene_fields

    def validate(
        self, candidate: object, confidence: float | None = None
    ) -> ValidatedPayload:
        """Lenient validation; never raises."""
        if not isinstance(candidate, Mapping):
            return self._failure(
                f"Invalid response format - expected an object, got {type(candidate).__name__}",
                confidence,
            )
        scenes = candidate.get(SCENES_FIELD, _MISSING)
        if scenes is _MISSING or scenes is None:
            return self._failure("Missing scenes collection", confidence)
        if not isinstance(scenes, list):
            return self._failure(
                f"Invalid scenes structure - expected a list, got {type(scenes).__name__}",
                confidence,
            )

        warnings: list[str] = []
        data: dict[str, typing.Any] = dict(candidate)
        for spec in self.top_level_fields:
            if spec.name == SCENES_FIELD:
                continue
            _fill_field(data, candidate, spec, index=0, label="", warnings=warnings)

        if not scenes:
            warnings.append("Scenes list is empty - using one template scene")
        data[SCENES_FIELD] = [
            self._repair_scene(scene, i, warnings) for i, scene in enumerate(scenes)
        ] or [scene_template(0)]

        if confidence is None:
            confidence = _reported_confidence(candidate.get("confidence"))
        if warnings:
            log.debug("Validation applied %d substitutions", len(warnings))
        return ValidatedPayload(
            success=True,
            data=data,
            warnings=tuple(warnings),
            confidence=min(1.0, max(0.0, confidence)),
        )

    def validate_strict(self, candidate: object) -> ValidatedPayload:
        """Validate without substitutions.

        Raises:
            PayloadValidationError: If anything is missing or malformed.
        """
        if not isinstance(candidate, Mapping):
            raise PayloadValidationError(
                f"Expected an object, got {type(candidate).__name__}",
                errors=("root: not an object",),
            )
        try:
            model = StoryboardModel.model_validate(dict(candidate))
        except ValidationError as e:
            errors = tuple(
                f"{'.'.join(str(part) for part in err['loc']) or 'root'}: {err['msg']}"
                for err in e.errors()
            )
            raise PayloadValidationError(
                f"Storyboard failed strict validation with {len(errors)} error(s)",
                errors=errors,
            ) from e
        return ValidatedPayload(
            success=True,
            data=model.model_dump(by_alias=True),
            confidence=1.0,
        )

    def _repair_scene(
        self, scene: object, index: int, warnings: list[str]
    ) -> dict[str, typing.Any]:
        if not isinstance(scene, Mapping):
            warnings.append(f"Scene {index + 1} invalid - using template")
            return scene_template(index)
        repaired: dict[str, typing.Any] = dict(scene)
        for spec in self.scene_fields:
            _fill_field(
                repaired,
                scene,
                spec,
                index=index,
                label=f"scene {index + 1} ",
                warnings=warnings,
            )
        return repaired

    def _failure(self, message: str, confidence: float | None) -> ValidatedPayload:
        log.warning("Validation failed: %s", message)
        return ValidatedPayload(
            success=False,
            data=None,
            errors=(message,),
            confidence=0.0 if confidence is None else confidence,
        )


_DEFAULT_VALIDATOR = SchemaValidator()


def validate(candidate: object, confidence: float | None = None) -> ValidatedPayload:
    return _DEFAULT_VALIDATOR.validate(candidate, confidence)


def validate_strict(candidate: object) -> ValidatedPayload:
    return _DEFAULT_VALIDATOR.validate_strict(candidate)
