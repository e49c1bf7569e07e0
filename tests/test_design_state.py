"""Tests for the design-state container."""
import pytest

from design_state import DesignState
from materials import get_material
from sheet_design import (
    Bend,
    Circle,
    Hole,
    HoleType,
    Position,
    Rectangle,
)


@pytest.fixture
def state():
    return DesignState()


class TestShapes:

    def test_add_and_read(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        assert [s.id for s in state.shapes] == ["rect-plain"]
        assert state.get_shape("rect-plain").width == 100.0

    def test_snapshot_is_isolated(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        snapshot = state.shapes
        snapshot[0].width = 999.0
        assert state.get_shape("rect-plain").width == 100.0

    def test_duplicate_id_rejected(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        with pytest.raises(ValueError, match="already"):
            state.add_shape(plain_rectangle)

    def test_update(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        updated = state.update_shape("rect-plain", width=40.0, position=Position(5, 5))
        assert updated.width == 40.0
        assert state.get_shape("rect-plain").position == Position(5, 5)

    def test_failed_update_leaves_state(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        with pytest.raises(ValueError):
            state.update_shape("rect-plain", width=-1.0)
        with pytest.raises(ValueError):
            state.update_shape("rect-plain", radius=3.0)
        assert state.get_shape("rect-plain").width == 100.0
        assert len(state.shapes) == 1

    def test_remove_clears_selection(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        state.select_shape("rect-plain")
        assert state.selected_shape.id == "rect-plain"
        state.remove_shape("rect-plain")
        assert state.shapes == ()
        assert state.selected_shape is None

    def test_unknown_shape(self, state):
        with pytest.raises(KeyError):
            state.remove_shape("nope")
        with pytest.raises(KeyError):
            state.select_shape("nope")

    def test_material(self, state):
        assert state.material.id == "steel-2mm"
        state.set_material(get_material("aluminium-3mm"))
        assert state.material.thickness == 3


class TestHolesAndBends:

    def test_hole_lifecycle(self, state):
        state.add_shape(Circle(id="c"))
        state.add_hole("c", Hole(id="h1", type=HoleType.CIRCLE, radius=5.0))
        state.update_hole("c", "h1", radius=8.0)
        assert state.get_shape("c").holes[0].radius == 8.0
        assert state.get_shape("c").holes[0].id == "h1"
        state.remove_hole("c", "h1")
        assert state.get_shape("c").holes == []

    def test_update_missing_hole(self, state):
        state.add_shape(Circle(id="c"))
        with pytest.raises(KeyError):
            state.update_hole("c", "missing", radius=3.0)

    def test_hole_id_immutable(self, state):
        state.add_shape(Circle(id="c", holes=[Hole(id="h1", type="circle", radius=5.0)]))
        with pytest.raises(ValueError):
            state.update_hole("c", "h1", id="h2")

    def test_bend_lifecycle(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        state.add_bend("rect-plain", Bend(id="b1", position=50.0))
        state.update_bend("rect-plain", "b1", angle=45.0, direction="down")
        bend = state.get_shape("rect-plain").bends[0]
        assert bend.angle == 45.0
        assert bend.direction.value == "down"
        state.remove_bend("rect-plain", "b1")
        assert state.get_shape("rect-plain").bends == []

    def test_bend_out_of_range_rejected(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        with pytest.raises(ValueError):
            state.add_bend("rect-plain", Bend(position=500.0))
        assert state.get_shape("rect-plain").bends == []

    def test_bends_only_on_rectangles(self, state):
        state.add_shape(Circle(id="c"))
        with pytest.raises(ValueError, match="rectangles"):
            state.add_bend("c", Bend(position=1.0))


class TestHistoryAndObservers:

    def test_undo_redo(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        state.update_shape("rect-plain", width=10.0)
        assert state.undo()
        assert state.get_shape("rect-plain").width == 100.0
        assert state.undo()
        assert state.shapes == ()
        assert not state.undo()
        assert state.redo()
        assert state.redo()
        assert state.get_shape("rect-plain").width == 10.0
        assert not state.redo()

    def test_observers_get_snapshots(self, state, plain_rectangle):
        seen = []
        unsubscribe = state.subscribe(lambda shapes: seen.append(len(shapes)))
        state.add_shape(plain_rectangle)
        state.add_shape(Rectangle(id="r2"))
        state.undo()
        unsubscribe()
        state.remove_shape("rect-plain")
        assert seen == [1, 2, 1]

    def test_clear_resets_history(self, state, plain_rectangle):
        state.add_shape(plain_rectangle)
        state.clear()
        assert state.shapes == ()
        assert not state.can_undo
