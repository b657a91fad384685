"""Reactive state primitives."""

from vue_ui.reactivity.state import ComputedFn, ReactiveState, Watcher

__all__ = ["ComputedFn", "ReactiveState", "Watcher"]
