"""Constraint Intake - Phase 1 of the analysis.

Validates a partial organizational constraint input and fills the gaps
with disclosed defaults, producing a complete ConstraintProfile.
"""

import logging
import math
from collections.abc import Mapping
from numbers import Integral, Real
from typing import Any, Optional

from .exceptions import InputRangeError, InputTypeError, IntakeError, IntakeValidationError
from .reference_data import SCALE_MAX, SCALE_MIN, ReferenceData, default_reference_data
from .schema import AssumptionRecord, ConstraintField, ConstraintProfile, IntakeResult

logger = logging.getLogger(__name__)


class ConstraintIntake:
    """Turns caller input into a complete, annotated constraint profile.

    Principles:
    - Every invalid field is reported, not just the first one
    - A missing field is never an error; it becomes a disclosed assumption
    - A present but invalid field is always an error, never defaulted
    - Assumptions follow canonical field order, not input order
    """

    def __init__(self, reference_data: Optional[ReferenceData] = None):
        self.reference_data = reference_data or default_reference_data()

    def process(self, partial_input: Optional[Mapping[str, Any]]) -> IntakeResult:
        """Validate and default a partial constraint input.

        Args:
            partial_input: Mapping of up to six constraint fields (snake_case
                or camelCase keys) to candidate values. ``None`` is treated
                as an empty mapping.

        Returns:
            IntakeResult with the complete profile and assumption records.

        Raises:
            IntakeValidationError: If any provided value is invalid.
        """
        provided = self._resolve_keys(partial_input or {})

        errors: list[IntakeError] = []
        values: dict[ConstraintField, int] = {}
        assumptions: list[AssumptionRecord] = []

        for field in ConstraintField:
            if field not in provided:
                default = self.reference_data.default_for(field)
                values[field] = default.value
                assumptions.append(AssumptionRecord(
                    field=field,
                    default_value=default.value,
                    rationale=default.rationale,
                ))
                continue

            key, raw_value = provided[field]
            value, error = validate_constraint_value(key, raw_value)
            if error:
                errors.append(error)
            else:
                values[field] = value

        if errors:
            logger.debug("Constraint intake rejected %d field(s): %s", len(errors), [e.field for e in errors])
            raise IntakeValidationError(errors)

        profile = ConstraintProfile(
            **{field.value: value for field, value in values.items()},
            input_completeness=not assumptions,
            assumptions=tuple(a.description for a in assumptions),
        )
        logger.debug("Constraint profile built with %d assumption(s)", len(assumptions))
        return IntakeResult(profile=profile, assumptions=tuple(assumptions))

    def _resolve_keys(self, partial_input: Mapping[str, Any]) -> dict[ConstraintField, tuple[str, Any]]:
        """Map input keys onto constraint fields, keeping the caller's key."""
        resolved: dict[ConstraintField, tuple[str, Any]] = {}
        for key, value in partial_input.items():
            field = ConstraintField.from_key(key) if isinstance(key, str) else None
            if field is None:
                logger.warning("Ignoring unknown constraint field %r", key)
                continue
            if field in resolved:
                previous_key = resolved[field][0]
                if previous_key == field.value:
                    logger.warning("Both %r and %r given; using %r", previous_key, key, previous_key)
                    continue
                logger.warning("Both %r and %r given; using %r", previous_key, key, key)
            resolved[field] = (key, value)
        return resolved


def validate_constraint_value(field_name: str, value: Any) -> tuple[Optional[int], Optional[IntakeError]]:
    """Validate a single value against the 1-10 integer scale.

    Returns:
        (value, None) on success, with integral floats converted to int,
        or (None, error) on failure.
    """
    # bool is an Integral subclass but never a valid weight
    if isinstance(value, bool) or not isinstance(value, Real):
        return None, InputTypeError(field_name, value)

    if isinstance(value, Integral):
        number = int(value)
    else:
        as_float = float(value)
        if not math.isfinite(as_float) or not as_float.is_integer():
            return None, InputTypeError(field_name, value)
        number = int(as_float)

    if number < SCALE_MIN or number > SCALE_MAX:
        return None, InputRangeError(field_name, value, SCALE_MIN, SCALE_MAX)

    return number, None


def process_profile(
    partial_input: Optional[Mapping[str, Any]],
    reference_data: Optional[ReferenceData] = None,
) -> IntakeResult:
    """Validate and default a partial constraint input."""
    return ConstraintIntake(reference_data).process(partial_input)
