# Domain records and the in-memory mirror of the store.
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from urllib.parse import urlparse


@dataclass(frozen=True)
class Ungrouped:
    pass


@dataclass(frozen=True)
class InGroup:
    group_id: str


UNGROUPED = Ungrouped()
GroupRef = Union[Ungrouped, InGroup]


def group_ref(value) -> GroupRef:
    """Normalize a stored/submitted group id into a GroupRef."""
    if isinstance(value, (Ungrouped, InGroup)):
        return value
    value = (value or "").strip()
    return InGroup(value) if value else UNGROUPED


def group_id_of(ref: GroupRef) -> str:
    return ref.group_id if isinstance(ref, InGroup) else ""


def _int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def parse_tags(raw) -> Tuple[str, ...]:
    """Comma separated (or an iterable of) tags -> distinct, in first-seen order."""
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = list(raw or [])
    out = []
    for t in parts:
        t = (t or "").strip()
        if t and t not in out:
            out.append(t)
    return tuple(out)


# only web links are kept as typed; anything else is treated as a bare host
HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(u: str) -> str:
    if not u:
        return ""
    u = u.strip()
    if not u:
        return ""
    if not HTTP_RE.match(u):
        u = "https://" + u
    return u


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    order: int = 0
    created_at: str = ""

    @classmethod
    def from_row(cls, r):
        return cls(r["id"], r.get("name", ""), _int(r.get("order")), r.get("created_at", ""))


@dataclass(frozen=True)
class Group:
    id: str
    section_id: str
    name: str
    order: int = 0
    created_at: str = ""

    @classmethod
    def from_row(cls, r):
        return cls(r["id"], r.get("section_id", ""), r.get("name", ""),
                   _int(r.get("order")), r.get("created_at", ""))


@dataclass(frozen=True)
class Resource:
    id: str
    section_id: str
    name: str
    url: str
    group: GroupRef = UNGROUPED
    desc: Optional[str] = None
    tags: Tuple[str, ...] = ()
    order: int = 0
    created_at: str = ""

    @classmethod
    def from_row(cls, r):
        return cls(
            id=r["id"],
            section_id=r.get("section_id", ""),
            name=r.get("name", ""),
            url=r.get("url", ""),
            group=group_ref(r.get("group_id")),
            desc=(r.get("desc") or "").strip() or None,
            tags=parse_tags(r.get("tags", "")),
            order=_int(r.get("order")),
            created_at=r.get("created_at", ""),
        )

    def to_fields(self):
        """Everything but the identity, in store form."""
        return {
            "section_id": self.section_id,
            "group_id": group_id_of(self.group),
            "name": self.name,
            "url": self.url,
            "desc": self.desc or "",
            "tags": ",".join(self.tags),
            "order": self.order,
        }


@dataclass(frozen=True)
class KeyConfig:
    hash: str
    salt: str

    @classmethod
    def from_row(cls, r):
        return cls(r.get("hash", ""), r.get("salt", ""))


# ----------------------------
# In-memory mirror
# ----------------------------
@dataclass
class HubState:
    sections: list = field(default_factory=list)
    groups: list = field(default_factory=list)
    resources: list = field(default_factory=list)

    @classmethod
    def from_store(cls, store):
        return cls(
            sections=[Section.from_row(r) for r in store.load_all("section")],
            groups=[Group.from_row(r) for r in store.load_all("group")],
            resources=[Resource.from_row(r) for r in store.load_all("resource")],
        )

    def replace(self, kind, records):
        """Swap one collection wholesale for a fresh store snapshot."""
        if kind == "section":
            self.sections = [Section.from_row(r) for r in records]
        elif kind == "group":
            self.groups = [Group.from_row(r) for r in records]
        elif kind == "resource":
            self.resources = [Resource.from_row(r) for r in records]

    def section(self, sid) -> Optional[Section]:
        return next((s for s in self.sections if s.id == sid), None)

    def group(self, gid) -> Optional[Group]:
        return next((g for g in self.groups if g.id == gid), None)

    def resource(self, rid) -> Optional[Resource]:
        return next((r for r in self.resources if r.id == rid), None)

    def groups_in(self, section_id):
        return [g for g in self.groups if g.section_id == section_id]

    def effective_group(self, res: Resource) -> GroupRef:
        """The resource's group if it still exists in the same section, else ungrouped."""
        if isinstance(res.group, InGroup):
            g = self.group(res.group.group_id)
            if g is not None and g.section_id == res.section_id:
                return res.group
        return UNGROUPED

    def members(self, section_id, ref: GroupRef):
        """Resources rendered in one list, in display order."""
        return [r for r in self.resources
                if r.section_id == section_id and self.effective_group(r) == ref]
