"""
Tests for the view builder: filtering, placeholders, and edit-only affordances.
"""

from resource_hub.models import Group, HubState, InGroup, Resource, Section
from resource_hub.view import build_view, display_domain, resource_matches


def _state():
    return HubState(
        sections=[Section("s1", "Python", 0), Section("s2", "Systems", 1)],
        groups=[Group("g1", "s1", "Testing", 0), Group("g2", "s1", "Empty", 1)],
        resources=[
            Resource("r1", "s1", "Fluent", "https://example.com/fluent", tags=("Python",), order=0),
            Resource("r2", "s1", "Pytest docs", "https://docs.example.org", group=InGroup("g1"), order=0),
            Resource("r3", "s2", "Rust book", "https://doc.rust-lang.org/book", desc="The book", order=0),
            Resource("r4", "s1", "Orphan", "https://www.orphan.net/x", group=InGroup("deleted"), order=1),
        ],
    )


def _walk(node):
    yield node
    if isinstance(node, dict):
        for v in node.values():
            yield from _walk(v)
    elif isinstance(node, list):
        for v in node:
            yield from _walk(v)


class TestSearch:
    def test_matches_tag_and_name_case_insensitively(self):
        st = _state()
        assert resource_matches(st.resource("r1"), "py")
        assert resource_matches(st.resource("r2"), "py")
        assert not resource_matches(st.resource("r3"), "py")

    def test_matches_url_and_description(self):
        st = _state()
        assert resource_matches(st.resource("r3"), "rust-lang")
        assert resource_matches(st.resource("r3"), "THE BOOK")

    def test_sections_without_matches_are_omitted(self):
        view = build_view(_state(), "py")
        assert view["kind"] == "sections"
        assert [s["id"] for s in view["sections"]] == ["s1"]

    def test_groups_without_matches_are_omitted_during_search(self):
        sec = build_view(_state(), "py")["sections"][0]
        assert [g["id"] for g in sec["groups"]] == ["g1"]
        assert [c["id"] for c in sec["ungrouped"]] == ["r1"]
        assert sec["count"] == 2

    def test_query_is_trimmed_and_lowered(self):
        assert build_view(_state(), "  PY ") == build_view(_state(), "py")

    def test_no_results_placeholder(self):
        view = build_view(_state(), "haskell")
        assert view == {"kind": "no_results", "query": "haskell"}

    def test_query_without_sections_is_no_results(self):
        assert build_view(HubState(), "x")["kind"] == "no_results"


class TestStructure:
    def test_empty_state_without_query(self):
        assert build_view(HubState(), "", edit_mode=False) == {"kind": "empty"}
        assert build_view(HubState(), "", edit_mode=True)["actions"] == ["add_section", "add_resource"]

    def test_all_sections_and_groups_shown_without_query(self):
        view = build_view(_state())
        assert [s["id"] for s in view["sections"]] == ["s1", "s2"]
        assert [g["id"] for g in view["sections"][0]["groups"]] == ["g1", "g2"]

    def test_dangling_group_reference_renders_ungrouped(self):
        sec = build_view(_state())["sections"][0]
        assert [c["id"] for c in sec["ungrouped"]] == ["r1", "r4"]

    def test_card_fields(self):
        card = build_view(_state())["sections"][0]["ungrouped"][1]
        assert card["domain"] == "orphan.net"
        assert card["url"] == "https://www.orphan.net/x"
        assert card["initial"] == "O"
        assert card["favicon"].endswith("www.orphan.net.ico")

    def test_rendering_is_idempotent(self):
        st = _state()
        assert build_view(st, "py", True) == build_view(st, "py", True)
        assert build_view(st) == build_view(st)


class TestEditAffordances:
    def test_viewer_tree_has_no_edit_keys(self):
        for node in _walk(build_view(_state())):
            if isinstance(node, dict):
                assert "actions" not in node
                assert "editable_name" not in node

    def test_editor_tree_has_affordances(self):
        sec = build_view(_state(), edit_mode=True)["sections"][0]
        assert sec["actions"] == ["add_resource", "add_group", "rename", "delete"]
        assert sec["groups"][0]["actions"] == ["rename", "delete"]
        assert sec["ungrouped"][0]["actions"] == ["options", "drag"]


class TestDisplayDomain:
    def test_strips_scheme_and_www(self):
        assert display_domain("https://www.example.com/path?q=1") == "example.com"
        assert display_domain("http://docs.python.org") == "docs.python.org"

    def test_only_leading_www(self):
        assert display_domain("https://a.www.example.com") == "a.www.example.com"


class TestCardLinks:
    def test_hand_edited_script_url_is_not_rendered_as_is(self):
        st = HubState(
            sections=[Section("s1", "S", 0)],
            resources=[Resource("r1", "s1", "Bad", "javascript:alert(1)", order=0)],
        )
        card = build_view(st)["sections"][0]["ungrouped"][0]
        assert card["url"] == "https://javascript:alert(1)"

    def test_web_urls_render_unchanged(self):
        card = build_view(_state())["sections"][0]["ungrouped"][0]
        assert card["url"] == "https://example.com/fluent"
