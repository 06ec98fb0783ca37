"""Drag-reorder engine.

Works on an ordered list of record ids. Whatever renders the list only has
to translate pointer coordinates into ``move``/``move_to`` calls; the
browser script in :mod:`resource_hub.templates` is that adapter and mirrors
the same states (ghost clone, placeholder, half-height swap).

    IDLE --start--> DRAGGING --move*--> DRAGGING --release--> IDLE
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .models import GroupRef

logger = logging.getLogger(__name__)


class ReorderError(Exception):
    pass


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class ListKey:
    section_id: str
    group: GroupRef


def dense_assignments(ids):
    """[(id, {"order": 0}), (id, {"order": 1}), ...] for the given sequence."""
    if len(set(ids)) != len(ids):
        raise ReorderError("duplicate ids in reorder sequence")
    return [(rid, {"order": i}) for i, rid in enumerate(ids)]


def insertion_index(target_index, pointer_y, top, height):
    """Half-height rule: upper half inserts before the target, lower half after."""
    if pointer_y < top + height / 2:
        return target_index
    return target_index + 1


@dataclass
class _Drag:
    key: ListKey
    ids: list
    dragged: str
    offset: tuple
    ghost: tuple


class DragReorder:
    def __init__(self):
        self._drag: Optional[_Drag] = None

    @property
    def state(self):
        return DragState.DRAGGING if self._drag else DragState.IDLE

    @property
    def order(self):
        return list(self._drag.ids) if self._drag else []

    @property
    def ghost_position(self):
        return self._drag.ghost if self._drag else None

    def start(self, key, item_ids, dragged_id, pointer=(0, 0), card_origin=(0, 0)):
        """Begin dragging `dragged_id` within the list `key`.

        Returns False (and changes nothing) when a drag is already running or
        the id does not belong to the list.
        """
        if self._drag is not None:
            logger.debug("drag already active, ignoring start on %s", dragged_id)
            return False
        ids = list(item_ids)
        if dragged_id not in ids:
            return False
        offset = (pointer[0] - card_origin[0], pointer[1] - card_origin[1])
        self._drag = _Drag(key, ids, dragged_id, offset, tuple(card_origin))
        return True

    def move(self, pointer, target_key=None, target_id=None, target_top=0.0, target_height=0.0):
        """Track the pointer; reposition the dragged id relative to the card under it.

        Targets in a different list, the dragged card itself, or no card at
        all only move the ghost.
        """
        d = self._drag
        if d is None:
            return []
        d.ghost = (pointer[0] - d.offset[0], pointer[1] - d.offset[1])
        if target_id is None or target_id == d.dragged or target_key != d.key:
            return list(d.ids)
        if target_id not in d.ids:
            return list(d.ids)
        rest = [i for i in d.ids if i != d.dragged]
        at = insertion_index(rest.index(target_id), pointer[1], target_top, target_height)
        rest.insert(at, d.dragged)
        d.ids = rest
        return list(d.ids)

    def move_to(self, index):
        """Place the dragged id before position `index` of the list without it."""
        d = self._drag
        if d is None:
            return []
        rest = [i for i in d.ids if i != d.dragged]
        index = max(0, min(len(rest), index))
        rest.insert(index, d.dragged)
        d.ids = rest
        return list(d.ids)

    def cancel(self):
        self._drag = None

    def release(self):
        """End the drag. Returns dense order assignments, or None if idle."""
        d = self._drag
        if d is None:
            return None
        self._drag = None
        return dense_assignments(d.ids)


def merge_sequence(current_ids, final_ids):
    """Dense assignments for a submitted list order.

    Ids that are not members of the list are dropped. Members missing from
    `final_ids` follow in their current relative order.
    """
    current = list(current_ids)
    members = set(current)
    wanted = []
    for rid in final_ids:
        if rid in members and rid not in wanted:
            wanted.append(rid)
    wanted += [rid for rid in current if rid not in wanted]
    return dense_assignments(wanted)
