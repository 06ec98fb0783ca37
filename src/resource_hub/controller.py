# Application controller: owns the in-memory state and every mutation.
import logging
from functools import partial, wraps

from .models import UNGROUPED, HubState, InGroup, group_id_of, group_ref, normalize_url, parse_tags
from .reorder import merge_sequence
from .storage import APPEND, Op
from .view import build_view

logger = logging.getLogger(__name__)

MIRRORED_KINDS = ("section", "group", "resource")


class ValidationError(Exception):
    def __init__(self, field, message):
        super().__init__(message)
        self.field = field
        self.message = message


def edit_required(fn):
    """Silently turn the call into a no-op (returning None) outside edit mode."""
    @wraps(fn)
    def wrapper(self, *a, **kw):
        if not self.edit_mode:
            logger.debug("rejected %s: not in edit mode", fn.__name__)
            return None
        return fn(self, *a, **kw)
    return wrapper


def _required(value, field, message):
    value = (value or "").strip()
    if not value:
        raise ValidationError(field, message)
    return value


def _renumber(kind, records, exclude=()):
    """Update ops that close the gaps left once `exclude` leaves the list."""
    remaining = [r for r in records if r.id not in exclude]
    return [Op("update", kind, r.id, {"order": i})
            for i, r in enumerate(remaining) if r.order != i]


class HubController:
    def __init__(self, store, edit_mode=False):
        self.store = store
        self.edit_mode = bool(edit_mode)
        self.state = HubState.from_store(store)
        self._unsubscribe = [store.subscribe(kind, partial(self.state.replace, kind))
                             for kind in MIRRORED_KINDS]

    def close(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def view(self, query=""):
        return build_view(self.state, query, self.edit_mode)

    def _section_or_fail(self, section_id):
        sec = self.state.section(section_id) if section_id else None
        if sec is None:
            raise ValidationError("section_id", "Please select a section.")
        return sec

    def _group_in_section(self, group_id, section_id):
        ref = group_ref(group_id)
        if isinstance(ref, InGroup):
            g = self.state.group(ref.group_id)
            if g is None or g.section_id != section_id:
                raise ValidationError("group_id", "That group is not in the selected section.")
        return ref

    # ----------------------------
    # Sections
    # ----------------------------
    @edit_required
    def create_section(self, name):
        name = _required(name, "name", "Section name required.")
        rid = self.store.create("section", {"name": name, "order": APPEND})
        logger.info("created section %s", rid)
        return self.state.section(rid)

    @edit_required
    def rename_section(self, section_id, name):
        name = (name or "").strip()
        if not name or self.state.section(section_id) is None:
            return False
        self.store.update("section", section_id, {"name": name})
        return True

    @edit_required
    def delete_section(self, section_id):
        if self.state.section(section_id) is None:
            return False
        ops = [Op("delete", "resource", r.id, None)
               for r in self.state.resources if r.section_id == section_id]
        ops += [Op("delete", "group", g.id, None) for g in self.state.groups_in(section_id)]
        ops.append(Op("delete", "section", section_id, None))
        ops += _renumber("section", self.state.sections, exclude={section_id})
        self.store.transaction(ops)
        logger.info("deleted section %s (%d records)", section_id, len(ops))
        return True

    # ----------------------------
    # Groups
    # ----------------------------
    @edit_required
    def create_group(self, section_id, name):
        name = _required(name, "name", "Group name required.")
        self._section_or_fail(section_id)
        rid = self.store.create("group", {
            "section_id": section_id,
            "name": name,
            "order": APPEND,
        })
        return self.state.group(rid)

    @edit_required
    def rename_group(self, group_id, name):
        name = (name or "").strip()
        if not name or self.state.group(group_id) is None:
            return False
        self.store.update("group", group_id, {"name": name})
        return True

    @edit_required
    def delete_group(self, group_id):
        g = self.state.group(group_id)
        if g is None:
            return False
        moving = self.state.members(g.section_id, InGroup(group_id))
        ops = [Op("update", "resource", r.id, {"group_id": "", "order": APPEND})
               for r in moving]
        moved = {r.id for r in moving}
        # stray references from other sections only lose the group id
        ops += [Op("update", "resource", r.id, {"group_id": ""})
                for r in self.state.resources
                if r.group == InGroup(group_id) and r.id not in moved]
        ops.append(Op("delete", "group", group_id, None))
        ops += _renumber("group", self.state.groups_in(g.section_id), exclude={group_id})
        self.store.transaction(ops)
        logger.info("deleted group %s, ungrouped %d resource(s)", group_id, len(moving))
        return True

    # ----------------------------
    # Resources
    # ----------------------------
    def _resource_fields(self, section_id, name, url, desc, tags):
        name = _required(name, "name", "Name required.")
        url = _required(url, "url", "URL required.")
        self._section_or_fail(section_id)
        return {
            "section_id": section_id,
            "name": name,
            "url": normalize_url(url),
            "desc": (desc or "").strip(),
            "tags": ",".join(parse_tags(tags)),
        }

    def _leave_list(self, res):
        """Renumber ops for the list `res` is leaving."""
        ref = self.state.effective_group(res)
        return _renumber("resource", self.state.members(res.section_id, ref), exclude={res.id})

    @edit_required
    def create_resource(self, section_id, name, url, desc="", tags="", group_id=None):
        fields = self._resource_fields(section_id, name, url, desc, tags)
        ref = self._group_in_section(group_id, section_id)
        fields["group_id"] = group_id_of(ref)
        fields["order"] = APPEND
        rid = self.store.create("resource", fields)
        logger.info("created resource %s in section %s", rid, section_id)
        return self.state.resource(rid)

    @edit_required
    def update_resource(self, resource_id, section_id, name, url, desc="", tags=""):
        res = self.state.resource(resource_id)
        if res is None:
            return False
        fields = self._resource_fields(section_id, name, url, desc, tags)
        ops = []
        if section_id != res.section_id:
            fields["group_id"] = ""
            fields["order"] = APPEND
            ops += self._leave_list(res)
        ops.insert(0, Op("update", "resource", resource_id, fields))
        self.store.transaction(ops)
        return True

    @edit_required
    def delete_resource(self, resource_id):
        res = self.state.resource(resource_id)
        if res is None:
            return False
        self.store.transaction([Op("delete", "resource", resource_id, None)] + self._leave_list(res))
        return True

    @edit_required
    def move_resource(self, resource_id, target_section_id):
        res = self.state.resource(resource_id)
        if res is None:
            return False
        self._section_or_fail(target_section_id)
        if res.section_id == target_section_id and self.state.effective_group(res) == UNGROUPED:
            return True
        ops = [Op("update", "resource", resource_id, {
            "section_id": target_section_id,
            "group_id": "",
            "order": APPEND,
        })]
        ops += self._leave_list(res)
        self.store.transaction(ops)
        return True

    @edit_required
    def copy_resource(self, resource_id, target_section_id):
        res = self.state.resource(resource_id)
        if res is None:
            return None
        self._section_or_fail(target_section_id)
        fields = res.to_fields()
        fields.update(section_id=target_section_id, group_id="",
                      order=APPEND)
        rid = self.store.create("resource", fields)
        return self.state.resource(rid)

    @edit_required
    def assign_group(self, resource_id, group_id):
        res = self.state.resource(resource_id)
        if res is None:
            return False
        ref = self._group_in_section(group_id, res.section_id)
        if self.state.effective_group(res) == ref:
            return True
        ops = [Op("update", "resource", resource_id, {
            "group_id": group_id_of(ref),
            "order": APPEND,
        })]
        ops += self._leave_list(res)
        self.store.transaction(ops)
        return True

    @edit_required
    def reorder_resources(self, section_id, group_id, ids):
        """Commit a dragged list order as dense indices in one batch write."""
        self._section_or_fail(section_id)
        ref = group_ref(group_id)
        current = [r.id for r in self.state.members(section_id, ref)]
        assignments = merge_sequence(current, ids or [])
        if assignments:
            self.store.batch_update("resource", assignments)
        return assignments
