# app.py: Flask front end for the resource hub.
#
# Viewers get a read-only page. Entering the shared edit key switches the
# session into edit mode, which is the only way any write reaches the store.
# Form posts redirect back with a flash; fetch() callers sending
# `Accept: application/json` or `X-Requested-With` get JSON instead.
import logging
import re

from flask import (
    Flask, request, redirect, url_for, session, flash, g,
    render_template_string, jsonify
)
from markupsafe import Markup, escape

from . import config
from .access import AccessGate, EditSession
from .controller import HubController, ValidationError
from .models import group_id_of
from .storage import CSVStore, StoreError
from .templates import BASE, FATAL, MAIN, SCRIPT

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.update(config.flask_config())


# ----------------------------
# Per-request wiring
# ----------------------------
def get_store():
    """One store (and one write lock) per data file."""
    path = app.config["HUB_DATA_FILE"]
    stores = app.extensions.setdefault("hub_stores", {})
    if path not in stores:
        stores[path] = CSVStore(path)
        stores[path].ensure()
    return stores[path]


def edit_session():
    return EditSession(session)


def hub():
    if "hub" not in g:
        g.hub = HubController(get_store(), edit_mode=edit_session().edit_mode)
    return g.hub


@app.teardown_appcontext
def close_hub(exc):
    h = g.pop("hub", None)
    if h is not None:
        h.close()


def wants_json():
    return request.headers.get("Accept", "").find("application/json") >= 0 \
        or bool(request.headers.get("X-Requested-With"))


def done(message=None, category="success", **payload):
    if wants_json():
        return jsonify({"ok": True, **payload})
    if message:
        flash(message, category)
    return redirect(url_for("index"))


def rejected():
    """Mutation outside edit mode: no state change and nothing to report."""
    if wants_json():
        return jsonify({"ok": False})
    return redirect(url_for("index"))


def not_found(what):
    if wants_json():
        return jsonify({"ok": False, "error": f"{what} not found."}), 404
    flash(f"{what} not found.", "danger")
    return redirect(url_for("index"))


@app.errorhandler(ValidationError)
def handle_validation(e):
    if wants_json():
        return jsonify({"ok": False, "field": e.field, "error": e.message}), 400
    flash(e.message, "danger")
    return redirect(url_for("index"))


@app.errorhandler(StoreError)
def handle_store_error(e):
    logger.error("store failure on %s %s: %s", request.method, request.path, e)
    if wants_json():
        return jsonify({"ok": False, "error": "Could not save changes. Please reload."}), 503
    if request.method == "GET":
        return fatal_page(str(e))
    flash("Could not save changes. Please reload.", "danger")
    return redirect(url_for("index"))


# ----------------------------
# Template helpers
# ----------------------------
@app.template_filter("hilite")
def jinja_hilite(text, q):
    if not text:
        return ""
    s = str(text)
    if not q:
        return escape(s)
    rx = re.compile(re.escape(q), re.I)
    out = []
    last = 0
    for m in rx.finditer(s):
        out.append(escape(s[last:m.start()]))
        out.append(Markup("<mark class='hl'>") + escape(m.group(0)) + Markup("</mark>"))
        last = m.end()
    out.append(escape(s[last:]))
    return Markup("").join(out)


def editor_data(h):
    """Records the edit forms need on the client; never sent to viewers."""
    if not h.edit_mode:
        return None
    st = h.state
    return {
        "sections": [{"id": s.id, "name": s.name} for s in st.sections],
        "groups": [{"id": x.id, "section_id": x.section_id, "name": x.name} for x in st.groups],
        "resources": [{
            "id": r.id, "section_id": r.section_id, "group_id": group_id_of(st.effective_group(r)),
            "name": r.name, "url": r.url, "desc": r.desc or "", "tags": list(r.tags),
        } for r in st.resources],
    }


def render_main(h, q):
    return render_template_string(MAIN, view=h.view(q), hub_data=editor_data(h))


def page(content, status=200, **ctx):
    es = edit_session()
    ctx.setdefault("edit_mode", es.edit_mode)
    ctx.setdefault("locked_out", es.locked)
    ctx.setdefault("query", "")
    ctx.setdefault("key_configured", False)
    return render_template_string(BASE, content=content, script=SCRIPT, **ctx), status


def fatal_page(message):
    return page(render_template_string(FATAL, message=message), status=503, edit_mode=False)


# ----------------------------
# Read-only views
# ----------------------------
@app.route("/", methods=["GET"])
def index():
    q = (request.args.get("q") or "").strip()
    h = hub()
    gate = AccessGate(h.store)
    return page(render_main(h, q), query=q, key_configured=gate.has_configured_secret())


@app.route("/fragment")
def fragment():
    q = (request.args.get("q") or "").strip()
    try:
        return render_main(hub(), q)
    except StoreError as e:
        logger.error("fragment render failed: %s", e)
        return render_template_string(FATAL, message=str(e)), 503


@app.route("/api/view")
def api_view():
    q = (request.args.get("q") or "").strip()
    return jsonify(hub().view(q))


# ----------------------------
# Edit key
# ----------------------------
@app.route("/unlock", methods=["POST"])
def unlock():
    gate = AccessGate(get_store())
    if not gate.has_configured_secret():
        flash("No edit key has been set yet.", "info")
        return redirect(url_for("index"))
    res = edit_session().unlock(gate, request.form.get("key") or "")
    if res.ok:
        msg, cat = "Edit mode on.", "success"
    elif res.locked:
        msg, cat = "Too many failed attempts. Editing is locked for this session.", "danger"
    else:
        msg, cat = f"Wrong edit key. {res.remaining} attempt(s) left.", "danger"
    if wants_json():
        return jsonify({"ok": res.ok, "locked": res.locked, "remaining": res.remaining, "message": msg})
    flash(msg, cat)
    return redirect(url_for("index"))


@app.route("/lock", methods=["POST"])
def lock():
    edit_session().lock()
    return done("Edit mode off.", "info")


@app.route("/key", methods=["POST"])
def set_key():
    gate = AccessGate(get_store())
    es = edit_session()
    if gate.has_configured_secret() and not es.edit_mode:
        return rejected()
    key = request.form.get("key") or ""
    if not key.strip():
        raise ValidationError("key", "Edit key required.")
    gate.set_secret(key)
    es.grant()
    return done("Edit key saved.")


# ----------------------------
# Sections
# ----------------------------
@app.route("/sections/add", methods=["POST"])
def add_section():
    sec = hub().create_section(request.form.get("name"))
    if sec is None:
        return rejected()
    return done("Section added.", id=sec.id)


@app.route("/sections/<sid>/rename", methods=["POST"])
def rename_section(sid):
    changed = hub().rename_section(sid, request.form.get("name"))
    if changed is None:
        return rejected()
    return done(changed=changed)


@app.route("/sections/<sid>/delete", methods=["POST"])
def delete_section(sid):
    changed = hub().delete_section(sid)
    if changed is None:
        return rejected()
    return done("Section deleted." if changed else None, changed=changed)


# ----------------------------
# Groups
# ----------------------------
@app.route("/groups/add", methods=["POST"])
def add_group():
    grp = hub().create_group(request.form.get("section_id"), request.form.get("name"))
    if grp is None:
        return rejected()
    return done("Group added.", id=grp.id)


@app.route("/groups/<gid>/rename", methods=["POST"])
def rename_group(gid):
    changed = hub().rename_group(gid, request.form.get("name"))
    if changed is None:
        return rejected()
    return done(changed=changed)


@app.route("/groups/<gid>/delete", methods=["POST"])
def delete_group(gid):
    changed = hub().delete_group(gid)
    if changed is None:
        return rejected()
    return done("Group deleted." if changed else None, changed=changed)


# ----------------------------
# Resources
# ----------------------------
@app.route("/resources/add", methods=["POST"])
def add_resource():
    f = request.form
    res = hub().create_resource(f.get("section_id"), f.get("name"), f.get("url"),
                                f.get("desc"), f.get("tags"), f.get("group_id"))
    if res is None:
        return rejected()
    return done("Resource added.", id=res.id, url=res.url)


@app.route("/resources/<rid>/edit", methods=["POST"])
def edit_resource(rid):
    f = request.form
    changed = hub().update_resource(rid, f.get("section_id"), f.get("name"), f.get("url"),
                                    f.get("desc"), f.get("tags"))
    if changed is None:
        return rejected()
    if not changed:
        return not_found("Resource")
    return done("Resource updated.")


@app.route("/resources/<rid>/delete", methods=["POST"])
def delete_resource(rid):
    changed = hub().delete_resource(rid)
    if changed is None:
        return rejected()
    return done("Resource deleted." if changed else None, changed=changed)


@app.route("/resources/<rid>/move", methods=["POST"])
def move_resource(rid):
    h = hub()
    target = request.form.get("section_id")
    if request.form.get("action") == "copy":
        if not h.edit_mode:
            return rejected()
        copy = h.copy_resource(rid, target)
        if copy is None:
            return not_found("Resource")
        return done("Resource copied.", id=copy.id)
    changed = h.move_resource(rid, target)
    if changed is None:
        return rejected()
    if not changed:
        return not_found("Resource")
    return done("Resource moved.")


@app.route("/resources/<rid>/group", methods=["POST"])
def assign_group(rid):
    changed = hub().assign_group(rid, request.form.get("group_id"))
    if changed is None:
        return rejected()
    if not changed:
        return not_found("Resource")
    return done("Group updated.")


# ---- Drag & drop reorder ----
@app.route("/reorder", methods=["POST"])
def reorder():
    payload = request.get_json(force=True, silent=True) or {}
    ids = payload.get("ids")
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ValidationError("ids", "ids must be a list of resource ids.")
    assignments = hub().reorder_resources(payload.get("section_id"), payload.get("group_id"), ids)
    if assignments is None:
        return rejected()
    return jsonify({"ok": True, "order": [rid for rid, _ in assignments]})
