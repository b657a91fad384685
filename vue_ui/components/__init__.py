"""Component runtime and built-in widgets."""

from vue_ui.components.base import Component
from vue_ui.components.buffer import BufferBackend, InMemoryBufferBackend
from vue_ui.components.hooks import LifecycleHooks
from vue_ui.components.options import normalize_option, normalize_options
from vue_ui.components.select import Select

COMPONENT_TYPES: dict[str, type[Component]] = {
    Select.component_type: Select,
}

__all__ = [
    "COMPONENT_TYPES",
    "BufferBackend",
    "Component",
    "InMemoryBufferBackend",
    "LifecycleHooks",
    "Select",
    "normalize_option",
    "normalize_options",
]
