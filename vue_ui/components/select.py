"""Select dropdown: open/closed state, focus, single or multi selection."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from vue_ui.reactivity.state import ReactiveState
from vue_ui.utils.exceptions import ValidationError

from .base import Component
from .buffer import BufferBackend
from .hooks import LifecycleHooks
from .options import (
    Option,
    find_option_by_index,
    find_option_by_value,
    is_valid_index,
    normalize_options,
    same_option,
)

if TYPE_CHECKING:
    from vue_ui.bridge.core import MessageBridge

DEFAULT_PROPS: dict[str, Any] = {
    "title": "Select",
    "width": 30,
    "style": "default",
    "placeholder": "Select...",
    "disabled": False,
    "required": False,
    "multi": False,
    "max_visible_options": 5,
    "options": [],
}

_BOOL_PROPS = ("disabled", "required", "multi")
_INT_PROPS = ("width", "max_visible_options")


def _focused_option_index(state: ReactiveState) -> int | None:
    index = state.get("focused_index")
    return index if is_valid_index(state.get("options") or [], index) else None


def _selected_option_index(state: ReactiveState) -> int | None:
    if state.get("multi"):
        return None
    index = state.get("selected_index")
    return index if is_valid_index(state.get("options") or [], index) else None


def _selected_value(state: ReactiveState) -> Any:
    if state.get("multi"):
        return [o.get("value") for o in state.get("selected_options") or []]
    option = find_option_by_index(state.get("options") or [], state.get("selected_option_index"))
    return option.get("value") if option is not None else None


def _selected_text(state: ReactiveState) -> str | None:
    if state.get("multi"):
        texts = [str(o.get("text")) for o in state.get("selected_options") or []]
        return ", ".join(texts) if texts else None
    option = find_option_by_index(state.get("options") or [], state.get("selected_option_index"))
    return str(option.get("text")) if option is not None else None


SELECT_COMPUTED = {
    "focused_option_index": _focused_option_index,
    "selected_option_index": _selected_option_index,
    "selected_value": _selected_value,
    "selected_text": _selected_text,
}


class Select(Component):
    """
    Dropdown with a Closed/Open state machine.

    Declined actions (opening while disabled, an out-of-range index, a value
    with no matching option) return ``False`` and leave state untouched.
    Selecting in single mode always closes the dropdown; in multi mode it
    toggles membership and keeps it open. Indices left dangling by
    ``update_options`` read back as ``None``.
    """

    component_type = "Select"
    METHODS = (
        "open",
        "close",
        "focus_option",
        "focus_next_option",
        "focus_prev_option",
        "focus_previous_option",
        "select_option",
        "select_focused_option",
        "select_current_option",
        "select_by_value",
        "confirm",
        "cancel",
        "update_options",
        "set_disabled",
        "get_value",
        "get_selected_option",
        "get_selected_options_count",
        "get_focus_index",
        "is_option_selected",
    )
    PROPS = (
        "title",
        "width",
        "style",
        "options",
        "placeholder",
        "disabled",
        "required",
        "multi",
        "max_visible_options",
    )

    def __init__(
        self,
        component_id: str | None = None,
        *,
        hooks: LifecycleHooks | None = None,
        bridge: MessageBridge | None = None,
        buffer_backend: BufferBackend | None = None,
        defaults: Mapping[str, Any] | None = None,
        **props: Any,
    ):
        initial = dict(DEFAULT_PROPS)
        initial.update(self.coerce_props(defaults or {}))
        initial.update(self.coerce_props(props))
        initial.update(
            {
                "is_open": False,
                "focused_index": None,
                "selected_index": None,
                "selected_options": [],
            }
        )
        super().__init__(
            component_id,
            state=initial,
            computed=SELECT_COMPUTED,
            hooks=hooks,
            bridge=bridge,
            buffer_backend=buffer_backend,
        )

    # -- props ---------------------------------------------------------------

    def coerce_props(self, props: Mapping[str, Any]) -> dict[str, Any]:
        patch = super().coerce_props(props)
        if "options" in patch:
            patch["options"] = normalize_options(patch["options"])
        for key in _BOOL_PROPS:
            if key in patch and not isinstance(patch[key], bool):
                raise ValidationError(f"{key} must be a boolean", field=key)
        for key in _INT_PROPS:
            if key in patch:
                value = patch[key]
                if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                    raise ValidationError(f"{key} must be a positive integer", field=key)
        if "title" in patch and patch["title"] is not None:
            patch["title"] = str(patch["title"])
        return patch

    @property
    def options(self) -> list[Option]:
        return list(self.state.get("options") or [])

    @property
    def is_open(self) -> bool:
        return bool(self.state.get("is_open"))

    @property
    def multi(self) -> bool:
        return bool(self.state.get("multi"))

    # -- open / close --------------------------------------------------------

    async def open(self) -> bool:
        if self.state.get("disabled"):
            logger.debug("Select {} is disabled, open declined", self.id)
            return False
        was_open = self.is_open
        await self.update_state({"is_open": True})
        if not was_open:
            await self.emit("select:opened", {})
        return True

    async def close(self) -> bool:
        was_open = self.is_open
        await self.update_state({"is_open": False})
        if was_open:
            await self.emit("select:closed", {})
        return True

    # -- focus ---------------------------------------------------------------

    async def focus_option(self, index: int) -> bool:
        _check_index_type(index)
        if not is_valid_index(self.options, index):
            return False
        await self.update_state({"focused_index": index})
        return True

    async def focus_next_option(self) -> bool:
        count = len(self.options)
        if count == 0:
            return False
        current = self.state.get("focused_option_index")
        target = 0 if current is None else min(current + 1, count - 1)
        await self.update_state({"focused_index": target})
        return True

    async def focus_prev_option(self) -> bool:
        count = len(self.options)
        if count == 0:
            return False
        current = self.state.get("focused_option_index")
        target = count - 1 if current is None else max(current - 1, 0)
        await self.update_state({"focused_index": target})
        return True

    async def focus_previous_option(self) -> bool:
        return await self.focus_prev_option()

    # -- selection -----------------------------------------------------------

    async def select_option(self, index: int) -> bool:
        _check_index_type(index)
        options = self.options
        if not is_valid_index(options, index):
            return False
        option = options[index]
        previous_value = self.state.get("selected_value")

        if self.multi:
            selected = [dict(o) for o in self.state.get("selected_options") or []]
            match = next((i for i, o in enumerate(selected) if same_option(o, option)), None)
            if match is None:
                selected.append(dict(option))
                event = "select:option_selected"
            else:
                selected.pop(match)
                event = "select:option_deselected"
            await self.update_state({"selected_options": selected})
            await self.emit(event, {"index": index, "value": option.get("value")})
        else:
            was_open = self.is_open
            await self.update_state({"selected_index": index, "is_open": False})
            await self.emit("select:option_selected", {"index": index, "value": option.get("value")})
            if was_open:
                await self.emit("select:closed", {})

        value = self.state.get("selected_value")
        if value != previous_value:
            await self.emit("select:changed", {"value": value, "previous_value": previous_value})
        return True

    async def select_by_value(self, value: Any) -> bool:
        _, index = find_option_by_value(self.options, value)
        if index is None:
            return False
        return await self.select_option(index)

    async def select_focused_option(self) -> bool:
        index = self.state.get("focused_option_index")
        if index is None:
            return False
        return await self.select_option(index)

    async def select_current_option(self) -> bool:
        return await self.select_focused_option()

    async def confirm(self) -> bool:
        if not self.is_open:
            return False
        await self.emit("select:confirmed", {"value": self.state.get("selected_value")})
        return await self.close()

    async def cancel(self, reason: str | None = None) -> bool:
        if not self.is_open:
            return False
        await self.emit("select:cancelled", {"reason": reason})
        return await self.close()

    # -- mutation ------------------------------------------------------------

    async def set_disabled(self, disabled: bool) -> bool:
        await self.update_state(self.coerce_props({"disabled": disabled}))
        return True

    async def update_options(self, options: list[Any]) -> bool:
        await self.update_state({"options": normalize_options(options)})
        return True

    # -- read helpers --------------------------------------------------------

    def get_value(self) -> Any:
        return self.state.get("selected_value")

    def get_selected_option(self) -> Option | list[Option] | None:
        """Selected option (single) or a copy of the selection list (multi)."""
        if self.multi:
            return [dict(o) for o in self.state.get("selected_options") or []]
        option = find_option_by_index(self.options, self.state.get("selected_option_index"))
        return dict(option) if option is not None else None

    def get_selected_options_count(self) -> int:
        if self.multi:
            return len(self.state.get("selected_options") or [])
        return 0 if self.state.get("selected_option_index") is None else 1

    def get_focus_index(self) -> int | None:
        return self.state.get("focused_option_index")

    def is_option_selected(self, index: int) -> bool:
        options = self.options
        if not is_valid_index(options, index):
            return False
        if self.multi:
            return any(same_option(o, options[index]) for o in self.state.get("selected_options") or [])
        return self.state.get("selected_option_index") == index

    def get_state(self) -> dict[str, Any]:
        s = self.state
        state: dict[str, Any] = {
            "id": self.id,
            "component_type": self.component_type,
            "title": s.get("title"),
            "is_open": self.is_open,
            "disabled": bool(s.get("disabled")),
            "required": bool(s.get("required")),
            "multi": self.multi,
            "placeholder": s.get("placeholder"),
            "width": s.get("width"),
            "style": s.get("style"),
            "max_visible_options": s.get("max_visible_options"),
            "options": [dict(o) for o in self.options],
            "selected_value": s.get("selected_value"),
            "selected_text": s.get("selected_text"),
            "focused_option_index": s.get("focused_option_index"),
        }
        if self.multi:
            state["selected_options"] = [dict(o) for o in s.get("selected_options") or []]
        else:
            state["selected_option_index"] = s.get("selected_option_index")
        return state

    # -- rendering -----------------------------------------------------------

    def render_lines(self) -> list[str]:
        s = self.state
        options = self.options
        width = int(s.get("width") or DEFAULT_PROPS["width"])
        lines = [str(s.get("title") or "")]
        if self.is_open:
            for option in options:
                width = max(width, len(str(option.get("text"))) + 6)

        display = s.get("selected_text") or str(s.get("placeholder") or "")
        lines.append("[ " + _fit(display, width - 4) + " ]")
        if not self.is_open:
            return lines

        lines.append("-" * width)
        focused = s.get("focused_option_index")
        visible = int(s.get("max_visible_options") or DEFAULT_PROPS["max_visible_options"])
        start = 0
        if focused is not None and focused >= visible:
            start = focused - visible + 1
        for index in range(start, min(start + visible, len(options))):
            text = str(options[index].get("text"))
            prefix = "> " if index == focused else "  "
            selected = self.is_option_selected(index)
            if self.multi:
                box = "[x] " if selected else "[ ] "
                lines.append(prefix + box + _fit(text, width - 6))
            else:
                suffix = "* " if selected else "  "
                lines.append(prefix + _fit(text, width - 4) + suffix)
        return lines


def _fit(text: str, room: int) -> str:
    """Truncate with an ellipsis or pad with spaces to exactly ``room`` chars."""
    room = max(room, 0)
    if len(text) > room:
        return text[: max(room - 3, 0)] + "..." if room > 3 else text[:room]
    return text + " " * (room - len(text))


def _check_index_type(index: Any) -> None:
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValidationError(f"option index must be an integer, got {type(index).__name__}", field="index")
