"""Viewer State — immutable sky position + survey selection, with validation.

Invariants:
    - ra ∈ [-360, 360], dec ∈ [-90, 90], fov ∈ (0, 180], all finite
    - survey stripped length >= 2
    - labels: at most 100, each name 1..120 chars, coordinates in range
    - parse_state() and validate_state() raise InvalidStateError, never return invalid data

Design Decisions:
    - Frozen dataclasses: a created state never changes, equality is structural
    - labels is a tuple or None: None and () are distinct so encode/decode round-trips exactly
"""

import math
from dataclasses import dataclass
from typing import Any

from skyview.core.errors import InvalidStateError

MAX_LABELS = 100
MAX_LABEL_NAME_LENGTH = 120
MIN_SURVEY_LENGTH = 2


@dataclass(frozen=True)
class NamedPoint:
    """A user-placed label on the sky."""
    name: str
    ra: float
    dec: float


@dataclass(frozen=True)
class ViewerState:
    """Shareable viewer position."""
    ra: float
    dec: float
    fov: float
    survey: str
    labels: tuple[NamedPoint, ...] | None = None


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_coordinates(ra: Any, dec: Any, fov: Any, survey: Any) -> None:
    """Validate the pointing fields shared by viewer states and cutout requests."""
    if not _is_number(ra) or ra < -360 or ra > 360:
        raise InvalidStateError(
            "RA must be a finite number between -360 and 360.", "ra",
        )
    if not _is_number(dec) or dec < -90 or dec > 90:
        raise InvalidStateError(
            "Dec must be a finite number between -90 and 90.", "dec",
        )
    if not _is_number(fov) or fov <= 0 or fov > 180:
        raise InvalidStateError(
            "FOV must be a finite number in (0, 180].", "fov",
        )
    if not isinstance(survey, str) or len(survey.strip()) < MIN_SURVEY_LENGTH:
        raise InvalidStateError(
            "Survey must be a non-empty string.", "survey",
        )


def _validate_label(label: NamedPoint) -> None:
    name = label.name
    if (
        not isinstance(name, str)
        or not name.strip()
        or len(name) > MAX_LABEL_NAME_LENGTH
    ):
        raise InvalidStateError(
            f"Each label requires a name between 1 and {MAX_LABEL_NAME_LENGTH} characters.",
            "labels.name",
        )
    if not _is_number(label.ra) or label.ra < -360 or label.ra > 360:
        raise InvalidStateError(
            "Each label RA must be between -360 and 360.", "labels.ra",
        )
    if not _is_number(label.dec) or label.dec < -90 or label.dec > 90:
        raise InvalidStateError(
            "Each label Dec must be between -90 and 90.", "labels.dec",
        )


def validate_state(state: ViewerState) -> None:
    """Raise InvalidStateError if any field violates the viewer invariants."""
    validate_coordinates(state.ra, state.dec, state.fov, state.survey)
    if state.labels is None:
        return
    if len(state.labels) > MAX_LABELS:
        raise InvalidStateError(
            f"labels cannot exceed {MAX_LABELS} entries.", "labels",
        )
    for label in state.labels:
        _validate_label(label)


def _parse_label(raw: Any) -> NamedPoint:
    if not isinstance(raw, dict):
        raise InvalidStateError("Each label must be an object.", "labels")
    return NamedPoint(
        name=raw.get("name"),
        ra=raw.get("ra"),
        dec=raw.get("dec"),
    )


def parse_state(payload: Any) -> ViewerState:
    """Build a validated ViewerState from a JSON-like dict.

    Numbers are normalised to float so a state parsed from `{"ra": 10}`
    equals one parsed from `{"ra": 10.0}`.
    """
    if not isinstance(payload, dict):
        raise InvalidStateError("Viewer state must be an object.", "state")

    raw_labels = payload.get("labels")
    if raw_labels is not None and not isinstance(raw_labels, list):
        raise InvalidStateError(
            "labels must be an array when provided.", "labels",
        )

    state = ViewerState(
        ra=payload.get("ra"),
        dec=payload.get("dec"),
        fov=payload.get("fov"),
        survey=payload.get("survey"),
        labels=(
            tuple(_parse_label(item) for item in raw_labels)
            if raw_labels is not None else None
        ),
    )
    validate_state(state)
    return _normalise(state)


def _normalise(state: ViewerState) -> ViewerState:
    return ViewerState(
        ra=float(state.ra),
        dec=float(state.dec),
        fov=float(state.fov),
        survey=state.survey,
        labels=(
            tuple(
                NamedPoint(name=p.name, ra=float(p.ra), dec=float(p.dec))
                for p in state.labels
            )
            if state.labels is not None else None
        ),
    )


def state_to_dict(state: ViewerState) -> dict:
    """JSON-ready dict; `labels` omitted when None."""
    data: dict[str, Any] = {
        "ra": state.ra,
        "dec": state.dec,
        "fov": state.fov,
        "survey": state.survey,
    }
    if state.labels is not None:
        data["labels"] = [
            {"name": p.name, "ra": p.ra, "dec": p.dec} for p in state.labels
        ]
    return data
