"""Lifecycle ordering, render serialisation and destroy semantics of Component."""

import asyncio

import pytest

from vue_ui.bridge import MessageBridge, RemoteComponent, connect_pair
from vue_ui.components import Component, InMemoryBufferBackend, LifecycleHooks, Select
from vue_ui.utils.exceptions import DestroyedComponentError, MethodNotFoundError, ValidationError


def _lines(component):
    return [f"count={component.state.get('count')}"]


def _tracking_hooks(events, backend=None):
    def before_mount(c):
        events.append(("before_mount", c.buffer))

    async def on_mounted(c):
        events.append(("on_mounted", backend.lines(c.buffer) if backend else None))

    return LifecycleHooks(
        before_mount=before_mount,
        on_mounted=on_mounted,
        on_updated=lambda c: events.append(("on_updated", c.state.get("count"))),
        on_before_destroy=lambda c: events.append(("on_before_destroy", c.mounted)),
        on_destroyed=lambda c: events.append(("on_destroyed", c.destroyed)),
    )


@pytest.mark.asyncio
async def test_mount_runs_hooks_around_allocation_and_first_render(backend):
    events = []
    comp = Component("c1", state={"count": 1}, hooks=_tracking_hooks(events, backend), buffer_backend=backend, render=_lines)
    assert await comp.mount() is True
    assert events == [("before_mount", None), ("on_mounted", ["count=1"])]
    assert comp.mounted and not comp.destroyed

    assert await comp.mount() is False
    assert len(events) == 2


@pytest.mark.asyncio
async def test_render_is_noop_until_mounted(backend):
    comp = Component("c1", state={"count": 0}, buffer_backend=backend, render=_lines)
    assert await comp.render() is False
    assert len(backend) == 0


@pytest.mark.asyncio
async def test_update_state_fires_watchers_then_renders_once(backend):
    events = []
    comp = Component("c1", state={"count": 0, "a": 0, "b": 0}, hooks=_tracking_hooks(events), buffer_backend=backend, render=_lines)
    await comp.mount()
    watched = []
    comp.state.watch("count", lambda new, old: watched.append((new, old)))
    writes_before = backend.writes(comp.buffer)

    await comp.update_state({"count": 3, "a": 1, "b": 2})

    assert watched == [(3, 0)]
    assert backend.writes(comp.buffer) == writes_before + 1
    assert backend.lines(comp.buffer) == ["count=3"]
    assert [e for e in events if e[0] == "on_updated"] == [("on_updated", 3)]


@pytest.mark.asyncio
async def test_update_state_rejects_non_mapping(backend):
    comp = Component("c1", buffer_backend=backend)
    with pytest.raises(ValidationError):
        await comp.update_state(["count", 1])


@pytest.mark.asyncio
async def test_call_method_binds_instance_and_awaits_coroutines(backend):
    def bump(c, step=1):
        return c.state.get("count") + step

    async def bump_async(c):
        await c.update_state({"count": c.state.get("count") + 1})
        return c.state.get("count")

    comp = Component(
        "c1",
        state={"count": 1},
        methods={"bump": bump, "bump_async": bump_async},
        buffer_backend=backend,
    )
    await comp.mount()
    assert await comp.call_method("bump", 5) == 6
    assert await comp.call_method("bump_async") == 2
    with pytest.raises(MethodNotFoundError) as exc:
        await comp.call_method("missing")
    assert exc.value.code == "METHOD_NOT_FOUND"


@pytest.mark.asyncio
async def test_destroy_order_and_terminal_state(backend):
    events = []
    bridge = MessageBridge()
    comp = Component("c1", state={"count": 0}, hooks=_tracking_hooks(events), bridge=bridge, buffer_backend=backend)
    await comp.mount()
    handle = comp.buffer
    assert bridge.has_handler("c1")

    assert await comp.destroy() is True
    assert events[-2:] == [("on_before_destroy", True), ("on_destroyed", True)]
    assert comp.destroyed and not comp.mounted
    assert not backend.is_open(handle)
    assert not bridge.has_handler("c1")

    assert await comp.destroy() is False
    assert events.count(("on_destroyed", True)) == 1
    assert await comp.mount() is False
    with pytest.raises(DestroyedComponentError):
        await comp.call_method("anything")
    with pytest.raises(DestroyedComponentError) as exc:
        await comp.update_state({"count": 1})
    assert exc.value.code == "COMPONENT_DESTROYED"


class FailingCloseBackend(InMemoryBufferBackend):
    async def close(self, handle):
        raise RuntimeError("window already gone")


@pytest.mark.asyncio
async def test_destroy_completes_when_buffer_release_fails():
    events = []
    comp = Component("c1", hooks=_tracking_hooks(events), buffer_backend=FailingCloseBackend())
    await comp.mount()
    assert await comp.destroy() is True
    assert comp.destroyed
    assert events[-1] == ("on_destroyed", True)


class SlowBackend(InMemoryBufferBackend):
    def __init__(self):
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def set_lines(self, handle, lines):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        await super().set_lines(handle, lines)
        self.active -= 1


@pytest.mark.asyncio
async def test_concurrent_updates_never_render_in_parallel():
    backend = SlowBackend()
    comp = Component("c1", state={"count": 0}, buffer_backend=backend, render=_lines)
    await comp.mount()
    await asyncio.gather(*(comp.update_state({"count": i}) for i in range(1, 6)))
    assert backend.max_active == 1
    assert backend.lines(comp.buffer) == ["count=5"]


@pytest.mark.asyncio
async def test_update_racing_destroy_is_rejected_not_crashing():
    backend = SlowBackend()
    comp = Component("c1", state={"count": 0}, buffer_backend=backend, render=_lines)
    await comp.mount()
    pending = asyncio.create_task(comp.update_state({"count": 1}))
    await asyncio.sleep(0)
    await comp.destroy()
    await pending
    with pytest.raises(DestroyedComponentError):
        await comp.update_state({"count": 2})


@pytest.mark.asyncio
async def test_set_props_rejects_undeclared_props(backend):
    comp = Component("c1", buffer_backend=backend)
    with pytest.raises(ValidationError):
        await comp.set_props({"nope": 1})


@pytest.mark.asyncio
async def test_remote_handle_drives_component_through_bridge(backend):
    host = MessageBridge(name="host")
    embedded = MessageBridge(name="embedded")
    to_embedded, to_host = connect_pair(host, embedded)

    received = []
    host.register_handler("c1", lambda m: received.append(m.action))

    comp = Component(
        "c1",
        state={"count": 1},
        methods={"add": lambda c, n: c.state.get("count") + n},
        bridge=embedded,
        buffer_backend=backend,
        render=_lines,
    )
    await comp.mount()

    remote = RemoteComponent(host, "c1", timeout=1.0)
    assert await remote.call_method("add", 2) == 3
    assert await remote.update_state({"count": 7}) is True
    state = await remote.get_state()
    assert state["count"] == 7 and state["id"] == "c1"
    assert backend.lines(comp.buffer) == ["count=7"]

    await comp.destroy()
    await to_host.drain()
    assert received[0] == "component:mounted"
    assert "component:updated" in received
    assert received[-1] == "component:destroyed"


@pytest.mark.asyncio
async def test_empty_injected_backend_is_kept(backend):
    comp = Component("c1", buffer_backend=backend)
    select = Select("s1", buffer_backend=backend)
    assert comp.buffer_backend is backend
    assert select.buffer_backend is backend
    await comp.mount()
    await select.mount()
    assert len(backend) == 2
    assert backend.is_open(comp.buffer) and backend.is_open(select.buffer)


def _yielding_hooks(events):
    async def before_mount(c):
        events.append("before_mount")
        await asyncio.sleep(0.01)

    async def on_before_destroy(c):
        events.append("on_before_destroy")
        await asyncio.sleep(0.01)

    return LifecycleHooks(
        before_mount=before_mount,
        on_mounted=lambda c: events.append("on_mounted"),
        on_before_destroy=on_before_destroy,
        on_destroyed=lambda c: events.append("on_destroyed"),
    )


@pytest.mark.asyncio
async def test_overlapping_mounts_allocate_once(backend):
    events = []
    comp = Component("c1", hooks=_yielding_hooks(events), buffer_backend=backend)
    results = await asyncio.gather(comp.mount(), comp.mount())
    assert sorted(results) == [False, True]
    assert events == ["before_mount", "on_mounted"]
    assert comp.mounted and not comp.mounting
    assert len(backend) == 1


@pytest.mark.asyncio
async def test_overlapping_destroys_run_hooks_once(backend):
    events = []
    comp = Component("c1", hooks=_yielding_hooks(events), buffer_backend=backend)
    await comp.mount()
    results = await asyncio.gather(comp.destroy(), comp.destroy())
    assert sorted(results) == [False, True]
    assert events.count("on_before_destroy") == 1
    assert events.count("on_destroyed") == 1
    assert comp.destroyed and not comp.destroying
    assert len(backend) == 0


@pytest.mark.asyncio
async def test_destroy_while_before_mount_is_pending(backend):
    events = []
    bridge = MessageBridge()
    comp = Component("c1", hooks=_yielding_hooks(events), bridge=bridge, buffer_backend=backend)
    mounting = asyncio.create_task(comp.mount())
    await asyncio.sleep(0)
    assert comp.mounting

    assert await comp.destroy() is True
    assert await mounting is False
    assert comp.destroyed and not comp.mounted
    assert comp.buffer is None
    assert len(backend) == 0
    assert not bridge.has_handler("c1")
    assert "on_mounted" not in events
    assert await comp.mount() is False


@pytest.mark.asyncio
async def test_failed_first_render_releases_buffer(backend):
    def broken(c):
        raise RuntimeError("render failed")

    comp = Component("c1", buffer_backend=backend, render=broken)
    with pytest.raises(RuntimeError):
        await comp.mount()
    assert not comp.mounted and not comp.mounting
    assert comp.buffer is None
    assert len(backend) == 0
