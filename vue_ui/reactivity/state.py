"""Observable state container with computed fields and watchers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from vue_ui.utils.exceptions import ValidationError

Watcher = Callable[[Any, Any], Any]
ComputedFn = Callable[["ReactiveState"], Any]


class ReactiveState:
    """
    Plain fields plus computed fields plus per-field watchers.

    Computed fields are evaluated on every read and never cached. Writing a
    plain field stores the value first, then calls each watcher for that
    field with ``(new, old)`` in registration order; a watcher that raises
    aborts the remaining watchers and the error reaches the caller of ``set``.
    """

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        computed: Mapping[str, ComputedFn] | None = None,
    ):
        self._fields: dict[str, Any] = dict(initial or {})
        self._computed: dict[str, ComputedFn] = {}
        self._watchers: dict[str, list[Watcher]] = {}
        for name, fn in (computed or {}).items():
            self.computed(name, fn)

    def get(self, key: str, default: Any = None) -> Any:
        fn = self._computed.get(key)
        if fn is not None:
            return fn(self)
        return self._fields.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key in self._computed:
            raise ValidationError(f"cannot assign computed field: {key}", field=key)
        previous = self._fields.get(key)
        self._fields[key] = value
        # Copy so a watcher disposing itself does not skip its neighbour.
        for callback in list(self._watchers.get(key, ())):
            callback(value, previous)

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def watch(self, key: str, callback: Watcher) -> Callable[[], None]:
        """Register ``callback`` for ``key``; the returned disposer removes it."""
        self._watchers.setdefault(key, []).append(callback)

        def dispose() -> None:
            callbacks = self._watchers.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)

        return dispose

    def computed(self, name: str, fn: ComputedFn) -> None:
        if name in self._fields:
            raise ValidationError(f"computed field shadows a plain field: {name}", field=name)
        self._computed[name] = fn

    def is_computed(self, key: str) -> bool:
        return key in self._computed

    def keys(self) -> list[str]:
        return list(self._fields) + [k for k in self._computed if k not in self._fields]

    def snapshot(self, keys: Iterable[str] | None = None) -> dict[str, Any]:
        names = list(keys) if keys is not None else self.keys()
        return {name: self.get(name) for name in names}

    def __contains__(self, key: object) -> bool:
        return key in self._fields or key in self._computed

    def __getitem__(self, key: str) -> Any:
        if key not in self:
            raise KeyError(key)
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __repr__(self) -> str:
        return f"ReactiveState({self._fields!r}, computed={sorted(self._computed)!r})"
