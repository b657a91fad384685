"""Option list normalisation and lookups for choice widgets."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vue_ui.utils.exceptions import ValidationError

Option = dict[str, Any]

_SCALARS = (str, int, float, bool)


def normalize_option(raw: Any, position: int) -> Option:
    """
    Coerce one raw option into ``{id, text, value}``.

    A bare scalar becomes ``{id: "<position+1>", text: str(v), value: str(v)}``.
    A mapping keeps its fields; a missing ``id`` gets the 1-based position,
    missing ``text`` and ``value`` fall back to the id.
    """
    if isinstance(raw, Mapping):
        option: Option = dict(raw)
        if option.get("id") is None:
            option["id"] = str(position + 1)
        if option.get("text") is None:
            option["text"] = str(option["id"])
        if "value" not in option or option["value"] is None:
            option["value"] = option["id"]
        return option
    if isinstance(raw, _SCALARS):
        text = str(raw)
        return {"id": str(position + 1), "text": text, "value": text}
    raise ValidationError(f"option {position} must be a mapping or a scalar, got {type(raw).__name__}", field="options")


def normalize_options(raw: Any) -> list[Option]:
    """Validate an option list; anything but a list/tuple is rejected."""
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(f"options must be a list, got {type(raw).__name__}", field="options")
    return [normalize_option(item, i) for i, item in enumerate(raw)]


def find_option_by_index(options: list[Option], index: Any) -> Option | None:
    if not is_valid_index(options, index):
        return None
    return options[index]


def find_option_by_value(options: list[Option], value: Any) -> tuple[Option | None, int | None]:
    """First option whose value equals ``value``, with its index."""
    for i, option in enumerate(options):
        if option.get("value") == value:
            return option, i
    return None, None


def is_valid_index(options: list[Option], index: Any) -> bool:
    # bool is an int subclass; True must not address option 1.
    if not isinstance(index, int) or isinstance(index, bool):
        return False
    return 0 <= index < len(options)


def same_option(a: Option, b: Option) -> bool:
    return a.get("id") == b.get("id") and a.get("value") == b.get("value")
