"""
Design-state container.

Owns the canonical shape list and is the only place it is mutated. Every
mutation validates first, records an undo snapshot and notifies observers with
a read-only snapshot of the new shape list.
"""
import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from history import DEFAULT_HISTORY_LIMIT, SnapshotHistory
from materials import Material, default_material
from sheet_design import (
    Bend,
    Hole,
    Rectangle,
    Shape,
    with_updates,
)

logger = logging.getLogger(__name__)

ShapesObserver = Callable[[Tuple[Shape, ...]], None]


class DesignState:
    """The in-memory design session: shapes, selection and material."""

    def __init__(
        self,
        material: Optional[Material] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._shapes: List[Shape] = []
        self.selected_shape_id: Optional[str] = None
        self.material: Material = material or default_material()
        self._history: SnapshotHistory[List[Shape]] = SnapshotHistory([], limit=history_limit)
        self._observers: List[ShapesObserver] = []

    # ── Read access ──────────────────────────────────────────────────────────

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        """Snapshot of the shape list; consumers never mutate state through it."""
        return tuple(copy.deepcopy(self._shapes))

    def get_shape(self, shape_id: str) -> Shape:
        return copy.deepcopy(self._find(shape_id))

    @property
    def selected_shape(self) -> Optional[Shape]:
        if self.selected_shape_id is None:
            return None
        return self.get_shape(self.selected_shape_id)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # ── Observers ────────────────────────────────────────────────────────────

    def subscribe(self, observer: ShapesObserver) -> Callable[[], None]:
        """Register *observer*; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.shapes
        for observer in list(self._observers):
            observer(snapshot)

    def _commit(self, shapes: List[Shape]) -> None:
        self._shapes = shapes
        self._history.push(shapes)
        logger.debug("Design updated: %d shapes", len(shapes))
        self._notify()

    # ── Shapes ───────────────────────────────────────────────────────────────

    def add_shape(self, shape: Shape) -> Shape:
        if any(s.id == shape.id for s in self._shapes):
            raise ValueError(f"Shape id already in design: {shape.id}")
        self._commit(self._shapes + [copy.deepcopy(shape)])
        return self.get_shape(shape.id)

    def update_shape(self, shape_id: str, **updates: Any) -> Shape:
        """Apply a type-narrowed partial update to one shape."""
        updated = with_updates(self._find(shape_id), updates)
        self._commit([updated if s.id == shape_id else s for s in self._shapes])
        return self.get_shape(shape_id)

    def remove_shape(self, shape_id: str) -> None:
        self._find(shape_id)
        if self.selected_shape_id == shape_id:
            self.selected_shape_id = None
        self._commit([s for s in self._shapes if s.id != shape_id])

    def select_shape(self, shape_id: Optional[str]) -> None:
        if shape_id is not None:
            self._find(shape_id)
        self.selected_shape_id = shape_id

    def set_material(self, material: Material) -> None:
        self.material = material

    def clear(self) -> None:
        self._shapes = []
        self.selected_shape_id = None
        self._history.reset([])
        self._notify()

    # ── Holes ────────────────────────────────────────────────────────────────

    def add_hole(self, shape_id: str, hole: Hole) -> Shape:
        shape = self._find(shape_id)
        return self.update_shape(shape_id, holes=list(shape.holes) + [hole])

    def update_hole(self, shape_id: str, hole_id: str, **updates: Any) -> Shape:
        shape = self._find(shape_id)
        holes = [
            _replace_child(h, updates) if h.id == hole_id else h
            for h in shape.holes
        ]
        if not any(h.id == hole_id for h in shape.holes):
            raise KeyError(f"No hole {hole_id} on shape {shape_id}")
        return self.update_shape(shape_id, holes=holes)

    def remove_hole(self, shape_id: str, hole_id: str) -> Shape:
        shape = self._find(shape_id)
        return self.update_shape(
            shape_id, holes=[h for h in shape.holes if h.id != hole_id]
        )

    # ── Bends ────────────────────────────────────────────────────────────────

    def add_bend(self, shape_id: str, bend: Bend) -> Shape:
        shape = self._find_rectangle(shape_id)
        return self.update_shape(shape_id, bends=list(shape.bends) + [bend])

    def update_bend(self, shape_id: str, bend_id: str, **updates: Any) -> Shape:
        shape = self._find_rectangle(shape_id)
        if not any(b.id == bend_id for b in shape.bends):
            raise KeyError(f"No bend {bend_id} on shape {shape_id}")
        bends = [
            _replace_child(b, updates) if b.id == bend_id else b
            for b in shape.bends
        ]
        return self.update_shape(shape_id, bends=bends)

    def remove_bend(self, shape_id: str, bend_id: str) -> Shape:
        shape = self._find_rectangle(shape_id)
        return self.update_shape(
            shape_id, bends=[b for b in shape.bends if b.id != bend_id]
        )

    # ── History ──────────────────────────────────────────────────────────────

    def undo(self) -> bool:
        if not self._history.can_undo:
            return False
        self._restore(self._history.undo())
        return True

    def redo(self) -> bool:
        if not self._history.can_redo:
            return False
        self._restore(self._history.redo())
        return True

    def _restore(self, shapes: List[Shape]) -> None:
        self._shapes = shapes
        if self.selected_shape_id and not any(s.id == self.selected_shape_id for s in shapes):
            self.selected_shape_id = None
        self._notify()

    # ── Internal ─────────────────────────────────────────────────────────────

    def _find(self, shape_id: str) -> Shape:
        for shape in self._shapes:
            if shape.id == shape_id:
                return shape
        raise KeyError(f"No shape with id {shape_id}")

    def _find_rectangle(self, shape_id: str) -> Rectangle:
        shape = self._find(shape_id)
        if not isinstance(shape, Rectangle):
            raise ValueError(f"Bends are only supported on rectangles, not {shape.kind.value}")
        return shape


def _replace_child(item: Any, updates: Dict[str, Any]) -> Any:
    """Partial update of a hole or bend; the id stays fixed."""
    if "id" in updates:
        raise ValueError("Ids are immutable")
    data = copy.deepcopy(item.__dict__)
    unknown = set(updates) - set(data)
    if unknown:
        raise ValueError(f"Unknown {type(item).__name__.lower()} fields: {sorted(unknown)}")
    data.update(updates)
    return type(item)(**data)
