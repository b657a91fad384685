"""Select state machine: open/close, focus clamping, selection and rendering."""

import pytest

from vue_ui.components import Select
from vue_ui.utils.exceptions import DestroyedComponentError, ValidationError


async def _mounted(backend, **props):
    select = Select("sel", buffer_backend=backend, **props)
    await select.mount()
    return select


@pytest.mark.asyncio
async def test_initial_state_is_closed_and_unselected(backend, options):
    select = await _mounted(backend, options=options)
    state = select.get_state()
    assert state["is_open"] is False
    assert state["selected_value"] is None
    assert state["selected_text"] is None
    assert state["selected_option_index"] is None
    assert state["focused_option_index"] is None
    assert len(state["options"]) == 3
    assert state["title"] == "Select"
    assert "selected_options" not in state


@pytest.mark.asyncio
async def test_open_close_and_disabled_guard(backend, options):
    select = await _mounted(backend, options=options)
    assert await select.open() is True
    assert select.is_open
    assert await select.close() is True
    assert await select.close() is True
    assert not select.is_open

    await select.set_disabled(True)
    assert await select.open() is False
    assert not select.is_open


@pytest.mark.asyncio
async def test_disabling_while_open_does_not_close(backend, options):
    select = await _mounted(backend, options=options)
    await select.open()
    await select.set_disabled(True)
    assert select.is_open
    await select.close()
    assert await select.open() is False


@pytest.mark.asyncio
async def test_focus_option_validates_index(backend, options):
    select = await _mounted(backend, options=options)
    assert await select.focus_option(1) is True
    assert select.get_focus_index() == 1
    assert await select.focus_option(3) is False
    assert await select.focus_option(-1) is False
    assert select.get_focus_index() == 1
    with pytest.raises(ValidationError):
        await select.focus_option("1")


@pytest.mark.asyncio
async def test_focus_next_clamps_without_wrapping(backend, options):
    select = await _mounted(backend, options=options)
    for _ in range(len(options) + 5):
        assert await select.focus_next_option() is True
    assert select.get_focus_index() == len(options) - 1


@pytest.mark.asyncio
async def test_focus_prev_clamps_at_zero_and_starts_from_last(backend, options):
    select = await _mounted(backend, options=options)
    assert await select.focus_prev_option() is True
    assert select.get_focus_index() == 2
    for _ in range(10):
        await select.focus_prev_option()
    assert select.get_focus_index() == 0


@pytest.mark.asyncio
async def test_focus_previous_option_is_callable_by_name(backend, options):
    select = await _mounted(backend, options=options)
    assert "focus_previous_option" in select.methods
    assert await select.call_method("focus_previous_option") is True
    assert select.get_focus_index() == 2
    assert await select.call_method("focus_previous_option") is True
    assert select.get_focus_index() == 1


@pytest.mark.asyncio
async def test_focus_moves_are_noops_without_options(backend):
    select = await _mounted(backend)
    assert await select.focus_next_option() is False
    assert await select.focus_prev_option() is False
    assert select.get_focus_index() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 2])
async def test_single_select_closes_and_sets_value(backend, options, index):
    select = await _mounted(backend, options=options)
    await select.open()
    assert await select.select_option(index) is True
    state = select.get_state()
    assert state["is_open"] is False
    assert state["selected_value"] == options[index]["value"]
    assert state["selected_text"] == options[index]["text"]
    assert state["selected_option_index"] == index
    assert select.get_selected_options_count() == 1


@pytest.mark.asyncio
async def test_select_out_of_range_is_declined(backend, options):
    select = await _mounted(backend, options=options)
    await select.select_option(0)
    assert await select.select_option(5) is False
    assert select.get_value() == "option1"
    with pytest.raises(ValidationError):
        await select.select_option(None)


@pytest.mark.asyncio
async def test_multi_select_toggles_and_stays_open(backend, options):
    select = await _mounted(backend, options=options, multi=True)
    await select.open()
    before = select.get_selected_options_count()
    assert await select.select_option(1) is True
    assert select.get_selected_options_count() == before + 1
    assert select.is_option_selected(1)
    assert select.is_open
    assert await select.select_option(1) is True
    assert select.get_selected_options_count() == before
    assert not select.is_option_selected(1)

    await select.select_option(0)
    await select.select_option(2)
    state = select.get_state()
    assert [o["value"] for o in state["selected_options"]] == ["option1", "option3"]
    assert state["selected_value"] == ["option1", "option3"]
    assert state["selected_text"] == "Option 1, Option 3"
    assert "selected_option_index" not in state


@pytest.mark.asyncio
async def test_select_by_value_uses_first_match(backend):
    select = await _mounted(
        backend,
        options=[
            {"id": "a", "text": "A", "value": "dup"},
            {"id": "b", "text": "B", "value": "dup"},
            {"id": "c", "text": "C", "value": "other"},
        ],
    )
    assert await select.select_by_value("dup") is True
    assert select.get_state()["selected_option_index"] == 0
    assert await select.select_by_value("missing") is False
    assert select.get_state()["selected_option_index"] == 0


@pytest.mark.asyncio
async def test_select_by_value_on_empty_options(backend):
    select = await _mounted(backend)
    assert await select.select_by_value("x") is False
    assert select.get_value() is None


@pytest.mark.asyncio
async def test_select_focused_option(backend, options):
    select = await _mounted(backend, options=options)
    assert await select.select_focused_option() is False
    await select.focus_option(2)
    assert await select.select_current_option() is True
    assert select.get_value() == "option3"


@pytest.mark.asyncio
async def test_update_options_replaces_and_invalidates_stale_indices(backend, options):
    select = await _mounted(backend, options=options)
    await select.focus_option(2)
    await select.select_option(2)

    assert await select.update_options([{"id": "x", "text": "Only", "value": 1}]) is True
    state = select.get_state()
    assert state["options"] == [{"id": "x", "text": "Only", "value": 1}]
    assert state["selected_option_index"] is None
    assert state["selected_value"] is None
    assert state["focused_option_index"] is None
    assert select.get_selected_option() is None


@pytest.mark.asyncio
async def test_update_options_rejects_non_list(backend, options):
    select = await _mounted(backend, options=options)
    with pytest.raises(ValidationError) as exc:
        await select.update_options("nope")
    assert exc.value.code == "INVALID_ARGUMENT"
    assert len(select.options) == 3


@pytest.mark.asyncio
async def test_options_are_normalised(backend):
    select = await _mounted(backend, options=["red", {"text": "Blue"}, {"id": "g"}])
    assert select.options == [
        {"id": "1", "text": "red", "value": "red"},
        {"id": "2", "text": "Blue", "value": "2"},
        {"id": "g", "text": "g", "value": "g"},
    ]


@pytest.mark.asyncio
async def test_confirm_and_cancel_only_while_open(backend, options):
    select = await _mounted(backend, options=options)
    events = []
    select.on("select:confirmed", events.append)
    select.on("select:cancelled", events.append)

    assert await select.confirm() is False
    assert await select.cancel() is False

    await select.select_option(1)
    await select.open()
    assert await select.confirm() is True
    assert not select.is_open
    await select.open()
    assert await select.cancel("escape") is True
    assert not select.is_open
    assert events == [{"id": "sel", "value": "option2"}, {"id": "sel", "reason": "escape"}]


@pytest.mark.asyncio
async def test_selection_events(backend, options):
    select = await _mounted(backend, options=options, multi=True)
    seen = []
    for name in ("select:option_selected", "select:option_deselected", "select:changed"):
        select.on(name, lambda data, name=name: seen.append((name, data)))

    await select.select_option(1)
    await select.select_option(1)
    assert seen[0] == ("select:option_selected", {"id": "sel", "index": 1, "value": "option2"})
    assert seen[1] == ("select:changed", {"id": "sel", "value": ["option2"], "previous_value": []})
    assert seen[2][0] == "select:option_deselected"
    assert seen[3] == ("select:changed", {"id": "sel", "value": [], "previous_value": ["option2"]})


@pytest.mark.asyncio
async def test_render_closed_and_open(backend, options):
    select = await _mounted(backend, options=options, title="Fruit", width=20)
    lines = backend.lines(select.buffer)
    assert lines[0] == "Fruit"
    assert lines[1].startswith("[ Select...") and lines[1].endswith(" ]")
    assert len(lines[1]) == 20
    assert len(lines) == 2

    await select.open()
    await select.focus_option(0)
    await select.select_option(1)
    await select.open()
    lines = backend.lines(select.buffer)
    assert lines[1].startswith("[ Option 2")
    assert lines[2] == "-" * 20
    assert lines[3].startswith("> Option 1")
    assert lines[4].startswith("  Option 2") and lines[4].endswith("* ")
    assert len(lines) == 6


@pytest.mark.asyncio
async def test_render_multi_markers_and_visible_window(backend):
    opts = [f"item {i}" for i in range(8)]
    select = await _mounted(backend, options=opts, multi=True, max_visible_options=3)
    await select.open()
    await select.select_option(4)
    await select.focus_option(5)
    lines = select.render_lines()
    rows = lines[3:]
    assert len(rows) == 3
    assert rows[0].startswith("  [ ] item 3")
    assert rows[1].startswith("  [x] item 4")
    assert rows[2].startswith("> [ ] item 5")


@pytest.mark.asyncio
async def test_set_props_routes_options_and_validates(backend, options):
    select = await _mounted(backend, options=options)
    four = options + [{"id": "4", "text": "Option 4", "value": "option4"}]
    assert await select.set_props({"options": four, "title": "Pick", "disabled": True}) is True
    state = select.get_state()
    assert state["options"] == four
    assert state["title"] == "Pick"
    assert state["disabled"] is True
    with pytest.raises(ValidationError):
        await select.set_props({"colour": "red"})
    with pytest.raises(ValidationError):
        await select.set_props({"width": 0})
    with pytest.raises(ValidationError):
        await select.set_props({"options": {"not": "a list"}})
    assert select.get_state()["options"] == four


@pytest.mark.asyncio
@pytest.mark.parametrize("prop", ["disabled", "required", "multi"])
@pytest.mark.parametrize("value", ["false", 0, 1, None])
async def test_boolean_props_reject_non_booleans(backend, options, prop, value):
    select = await _mounted(backend, options=options)
    with pytest.raises(ValidationError) as exc:
        await select.set_props({prop: value})
    assert exc.value.details == {"field": prop}
    assert select.get_state()[prop] is False


def test_boolean_props_are_checked_at_construction(backend):
    with pytest.raises(ValidationError):
        Select("sel", buffer_backend=backend, disabled="false")
    with pytest.raises(ValidationError):
        Select("sel", buffer_backend=backend, defaults={"multi": "yes"})


@pytest.mark.asyncio
async def test_set_disabled_requires_a_boolean(backend, options):
    select = await _mounted(backend, options=options)
    with pytest.raises(ValidationError):
        await select.set_disabled("false")
    assert await select.open() is True


@pytest.mark.asyncio
async def test_methods_on_destroyed_select_fail(backend, options):
    select = await _mounted(backend, options=options)
    await select.destroy()
    with pytest.raises(DestroyedComponentError):
        await select.call_method("open")
    with pytest.raises(DestroyedComponentError):
        await select.select_option(0)
    assert await select.destroy() is False
