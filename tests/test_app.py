"""
Tests for the Flask routes.
"""

from resource_hub.access import AccessGate

JSON = {"Accept": "application/json"}


def _add_section(c, name="Python"):
    return c.post("/sections/add", data={"name": name}, headers=JSON).get_json()


def _add_resource(c, section_id, **fields):
    data = {"section_id": section_id, "name": "Example", "url": "example.com"}
    data.update(fields)
    return c.post("/resources/add", data=data, headers=JSON)


class TestViewerPages:
    def test_empty_viewer_page(self, client):
        rsp = client.get("/")
        assert rsp.status_code == 200
        html = rsp.get_data(as_text=True)
        assert "Nothing has been shared here yet." in html
        assert "Set edit key" in html
        assert 'class="drag-handle"' not in html

    def test_viewer_sees_no_edit_affordances(self, editor, client):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid)
        editor.post("/lock")

        html = client.get("/").get_data(as_text=True)
        assert "Example" in html
        assert 'class="drag-handle"' not in html
        assert "card-menu-btn\" type=" not in html
        assert 'data-action="' not in html
        assert 'id="hubData"' not in html

    def test_editor_page_has_affordances(self, editor):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid)
        html = editor.get("/").get_data(as_text=True)
        assert 'class="drag-handle"' in html
        assert 'id="hubData"' in html

    def test_drag_script_handles_cancelled_gestures(self, editor):
        html = editor.get("/").get_data(as_text=True)
        assert "addEventListener('pointercancel', onPointerCancel)" in html
        assert "removeEventListener('pointercancel', onPointerCancel)" in html

    def test_page_carries_browser_features(self, editor):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid)
        html = editor.get("/").get_data(as_text=True)
        assert 'id="themeToggle"' in html
        assert "localStorage.setItem" in html
        assert "(e.ctrlKey || e.metaKey) && e.key === 'k'" in html
        assert "function startInlineRename" in html
        assert 'id="contextMenu"' in html
        assert "nextElementSibling" in html

    def test_script_url_never_reaches_viewer_href(self, editor, client, web_store):
        sid = _add_section(editor)["id"]
        body = _add_resource(editor, sid, url="javascript://%0aalert(document.cookie)").get_json()
        assert body["url"].startswith("https://")
        assert web_store.load_all("resource")[0]["url"].startswith("https://")
        editor.post("/lock")

        html = client.get("/").get_data(as_text=True)
        assert 'href="javascript:' not in html

    def test_search_fragment_and_api(self, editor):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid, name="Pytest docs", url="docs.pytest.org")
        _add_resource(editor, sid, name="Rust", url="rust-lang.org")

        view = editor.get("/api/view?q=PYTEST").get_json()
        cards = view["sections"][0]["ungrouped"]
        assert [c["name"] for c in cards] == ["Pytest docs"]

        frag = editor.get("/fragment?q=haskell").get_data(as_text=True)
        assert 'No resources found for "haskell"' in frag

    def test_search_highlights_matches(self, editor):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid, name="Pytest docs")
        html = editor.get("/?q=test").get_data(as_text=True)
        assert "<mark class='hl'>test</mark>" in html


class TestKeyFlow:
    def test_first_key_set_enters_edit_mode(self, client):
        rsp = client.post("/key", data={"key": "secret"}, headers=JSON)
        assert rsp.get_json()["ok"]
        with client.session_transaction() as s:
            assert s["edit_mode"]

    def test_viewer_cannot_replace_key(self, client, web_store):
        AccessGate(web_store).set_secret("secret")
        before = web_store.get_config()
        rsp = client.post("/key", data={"key": "mine"}, headers=JSON)
        assert rsp.get_json() == {"ok": False}
        assert web_store.get_config() == before

    def test_unlock_and_lockout(self, client, web_store, monkeypatch):
        AccessGate(web_store).set_secret("secret")
        calls = []
        real = AccessGate.verify_secret

        def counting(self, candidate):
            calls.append(candidate)
            return real(self, candidate)

        monkeypatch.setattr(AccessGate, "verify_secret", counting)

        for remaining in (2, 1):
            body = client.post("/unlock", data={"key": "nope"}, headers=JSON).get_json()
            assert body["remaining"] == remaining and not body["locked"]
        body = client.post("/unlock", data={"key": "nope"}, headers=JSON).get_json()
        assert body["locked"]

        body = client.post("/unlock", data={"key": "secret"}, headers=JSON).get_json()
        assert not body["ok"] and body["locked"]
        assert len(calls) == 3

    def test_unlock_success_flashes(self, client, web_store):
        AccessGate(web_store).set_secret("secret")
        rsp = client.post("/unlock", data={"key": "secret"}, follow_redirects=True)
        assert "Edit mode on." in rsp.get_data(as_text=True)


class TestMutations:
    def test_resource_url_normalized(self, editor):
        sid = _add_section(editor)["id"]
        body = _add_resource(editor, sid).get_json()
        assert body["url"] == "https://example.com"

    def test_validation_error_json(self, editor):
        sid = _add_section(editor)["id"]
        rsp = _add_resource(editor, sid, name="  ")
        assert rsp.status_code == 400
        assert rsp.get_json()["field"] == "name"

    def test_validation_error_flashes(self, editor):
        rsp = editor.post("/sections/add", data={"name": ""}, follow_redirects=True)
        assert "Section name required." in rsp.get_data(as_text=True)

    def test_viewer_mutation_is_silent(self, client, tmp_path):
        path = tmp_path / "web.csv"
        client.get("/")
        before = path.read_bytes()
        rsp = client.post("/sections/add", data={"name": "X"}, headers=JSON)
        assert rsp.status_code == 200
        assert rsp.get_json() == {"ok": False}
        rsp = client.post("/sections/add", data={"name": "X"})
        assert rsp.status_code == 302
        assert path.read_bytes() == before

    def test_delete_section_cascades(self, editor, web_store):
        sid = _add_section(editor)["id"]
        _add_resource(editor, sid)
        editor.post("/groups/add", data={"section_id": sid, "name": "G"}, headers=JSON)
        assert editor.post(f"/sections/{sid}/delete", headers=JSON).get_json()["changed"]
        assert web_store.load_all("resource") == []
        assert web_store.load_all("group") == []

    def test_move_and_copy(self, editor, web_store):
        a = _add_section(editor, "A")["id"]
        b = _add_section(editor, "B")["id"]
        rid = _add_resource(editor, a).get_json()["id"]
        copy = editor.post(f"/resources/{rid}/move", data={"section_id": b, "action": "copy"}, headers=JSON).get_json()
        assert copy["id"] != rid
        editor.post(f"/resources/{rid}/move", data={"section_id": b, "action": "move"}, headers=JSON)
        assert {r["section_id"] for r in web_store.load_all("resource")} == {b}

    def test_edit_missing_resource_404(self, editor):
        sid = _add_section(editor)["id"]
        rsp = editor.post("/resources/nope/edit", data={"section_id": sid, "name": "n", "url": "u"}, headers=JSON)
        assert rsp.status_code == 404

    def test_reorder(self, editor, web_store):
        sid = _add_section(editor)["id"]
        ids = [_add_resource(editor, sid, name=n).get_json()["id"] for n in ("a", "b", "c")]
        rsp = editor.post("/reorder", json={"section_id": sid, "group_id": None, "ids": ids[::-1]})
        assert rsp.get_json() == {"ok": True, "order": ids[::-1]}
        stored = web_store.load_all("resource")
        assert [(r["id"], r["order"]) for r in stored] == [(ids[2], "0"), (ids[1], "1"), (ids[0], "2")]

    def test_reorder_during_search_keeps_hidden_members(self, editor, web_store):
        sid = _add_section(editor)["id"]
        a, b, c = [_add_resource(editor, sid, name=n).get_json()["id"] for n in ("a", "b", "c")]
        rsp = editor.post("/reorder", json={"section_id": sid, "group_id": None, "ids": [c, a]})
        assert rsp.get_json() == {"ok": True, "order": [c, a, b]}
        stored = web_store.load_all("resource")
        assert [(r["id"], r["order"]) for r in stored] == [(c, "0"), (a, "1"), (b, "2")]

    def test_reorder_rejects_bad_payload(self, editor):
        sid = _add_section(editor)["id"]
        rsp = editor.post("/reorder", json={"section_id": sid, "ids": "abc"}, headers=JSON)
        assert rsp.status_code == 400


class TestStoreFailure:
    def test_unreadable_store_shows_error_page(self, client, tmp_path):
        (tmp_path / "web.csv").write_text("not,a,hub,file\n", encoding="utf-8")
        rsp = client.get("/")
        assert rsp.status_code == 503
        html = rsp.get_data(as_text=True)
        assert "Could not load your resources" in html
        assert "No sections yet" not in html

    def test_unreadable_store_on_write(self, editor, tmp_path):
        (tmp_path / "web.csv").write_text("garbage\n", encoding="utf-8")
        rsp = editor.post("/sections/add", data={"name": "X"}, headers=JSON)
        assert rsp.status_code == 503

    def test_unreadable_store_on_fragment(self, client, tmp_path):
        client.get("/")
        (tmp_path / "web.csv").write_text("garbage\n", encoding="utf-8")
        rsp = client.get("/fragment?q=py")
        assert rsp.status_code == 503
        assert "Could not load your resources" in rsp.get_data(as_text=True)

    def test_data_file_removed_while_running(self, client, tmp_path):
        assert client.get("/").status_code == 200
        (tmp_path / "web.csv").unlink()
        rsp = client.get("/")
        assert rsp.status_code == 503
        assert "Nothing has been shared here yet." not in rsp.get_data(as_text=True)
