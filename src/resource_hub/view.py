"""View Builder.

``build_view`` turns a :class:`~resource_hub.models.HubState` into a plain
tree of dicts. It never touches the store. Edit affordances (the
``actions`` and ``editable_name`` keys) exist only when ``edit_mode`` is
true, since the same tree serves untrusted viewers.
"""
from urllib.parse import urlparse

from .models import UNGROUPED, InGroup, normalize_url

SECTION_ACTIONS = ["add_resource", "add_group", "rename", "delete"]
GROUP_ACTIONS = ["rename", "delete"]
CARD_ACTIONS = ["options", "drag"]
EMPTY_ACTIONS = ["add_section", "add_resource"]


def display_domain(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        host = ""
    if not host:
        host = url.split("://", 1)[-1].split("/", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return host or url


def favicon_url(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        host = ""
    if not host:
        return ""
    return f"https://icons.duckduckgo.com/ip3/{host}.ico"


def initial(name: str) -> str:
    name = (name or "").strip()
    return name[0].upper() if name else "?"


def resource_matches(res, query: str) -> bool:
    """Case-insensitive substring match over name, url, desc and tags."""
    if not query:
        return True
    q = query.lower()
    if q in res.name.lower() or q in res.url.lower():
        return True
    if res.desc and q in res.desc.lower():
        return True
    return any(q in t.lower() for t in res.tags)


def build_card(res, edit_mode):
    card = {
        "id": res.id,
        "name": res.name,
        # hand-edited rows may hold any scheme
        "url": normalize_url(res.url),
        "domain": display_domain(res.url),
        "favicon": favicon_url(res.url),
        "initial": initial(res.name),
        "desc": res.desc,
        "tags": list(res.tags),
    }
    if edit_mode:
        card["actions"] = list(CARD_ACTIONS)
    return card


def build_section(state, section, query, edit_mode):
    """Section node, or None when a search leaves nothing to show in it."""
    ungrouped = [r for r in state.members(section.id, UNGROUPED) if resource_matches(r, query)]
    groups = []
    for g in sorted(state.groups_in(section.id), key=lambda g: g.order):
        members = [r for r in state.members(section.id, InGroup(g.id)) if resource_matches(r, query)]
        if query and not members:
            continue
        node = {
            "id": g.id,
            "name": g.name,
            "count": len(members),
            "resources": [build_card(r, edit_mode) for r in members],
        }
        if edit_mode:
            node["actions"] = list(GROUP_ACTIONS)
            node["editable_name"] = True
        groups.append(node)

    count = len(ungrouped) + sum(g["count"] for g in groups)
    if query and count == 0:
        return None

    node = {
        "id": section.id,
        "name": section.name,
        "count": count,
        "ungrouped": [build_card(r, edit_mode) for r in ungrouped],
        "groups": groups,
    }
    if edit_mode:
        node["actions"] = list(SECTION_ACTIONS)
        node["editable_name"] = True
    return node


def build_view(state, query="", edit_mode=False):
    query = (query or "").strip().lower()

    if not state.sections and not query:
        view = {"kind": "empty"}
        if edit_mode:
            view["actions"] = list(EMPTY_ACTIONS)
        return view

    sections = []
    for sec in sorted(state.sections, key=lambda s: s.order):
        node = build_section(state, sec, query, edit_mode)
        if node is not None:
            sections.append(node)

    if query and not sections:
        return {"kind": "no_results", "query": query}
    return {"kind": "sections", "query": query, "sections": sections}
