# Inline Jinja templates, rendered with render_template_string.

BASE = r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1">
  <title>{{ page_title or "Resource Hub" }}</title>
  <link href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/6.5.0/css/all.min.css" rel="stylesheet">
  <style>
    :root{
      --gap: 0.8rem; --radius: 8px; --btn-radius: 6px; --muted:#6b7280; --brand:#2b6cb0; --danger:#ef4444;
      --bg:#f5f7fb; --text:#0f172a; --card-bg:#ffffff; --header-bg:#253858; --border:#e5e7eb; --hover:#f3f4f6;
      --overlay: rgba(15, 23, 42, .55); --hl:#fde68a;
    }
    .dark{ --bg:#0b1220; --text:#e5e7eb; --card-bg:#0f172a; --header-bg:#0e223c; --border:#1f2937; --hover:#142036; --brand:#7aa2ff; --muted:#94a3b8; --overlay: rgba(0,0,0,.6); --hl:#8b6f00; }
    *{ box-sizing: border-box; } html, body { height: 100%; }
    body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; background:var(--bg); color:var(--text); margin:0; }
    header { background:var(--header-bg); color:#fff; padding:0.6rem 1rem; display:flex; justify-content:space-between; align-items:center; gap:1rem; position:sticky; top:0; z-index:5; }
    .titlebar { display:flex; align-items:center; gap:.6rem; font-weight:700; }
    .top-right { display:flex; align-items:center; gap:.45rem; }
    .container { padding:0.8rem; max-width: min(1600px, 98vw); margin: 0 auto; }
    .flash { padding:0.45rem 0.7rem; border-radius:var(--radius); margin: 0 0 0.6rem 0; }
    .flash.success { background:#e8fff2; color:#155d2e; } .flash.info { background:#eef2ff; color:#1e3a8a; } .flash.danger { background:#fff1f2; color:#991b1b; }
    .dark .flash.success { background:#0f2a1b; color:#86efac; } .dark .flash.info { background:#0f1530; color:#93c5fd; } .dark .flash.danger { background:#2a0f14; color:#fda4af; }

    .search-wrap { position:relative; }
    .search-wrap input { width:min(360px, 40vw); border:1px solid var(--border); border-radius:8px; padding:.4rem 1.8rem .4rem .55rem; background:var(--card-bg); color:var(--text); }
    .search-clear { position:absolute; right:.35rem; top:50%; transform:translateY(-50%); border:0; background:transparent; color:var(--muted); cursor:pointer; display:none; }
    .search-clear.visible { display:block; }

    .btn { display:inline-flex; align-items:center; gap:0.35rem; background:var(--brand); color:#fff; text-decoration:none; border:0; padding:0.3rem 0.55rem; border-radius:var(--btn-radius); cursor:pointer; font-size:0.88rem; }
    .btn.small { padding: 0.22rem 0.45rem; font-size: 0.82rem; }
    .btn.ghost { background:var(--hover); color:inherit; }
    .btn.danger { background:var(--danger); }
    .btn-icon { background:transparent; border:0; cursor:pointer; color:var(--muted); padding:.15rem .3rem; border-radius:var(--btn-radius); }
    .btn-icon:hover { background:var(--hover); color:var(--text); }
    .muted { color: var(--muted); }
    .pill { font-size:.75rem; padding:.05rem .45rem; border:1px solid var(--border); border-radius:999px; color:var(--muted); }

    .section-block { margin-bottom: 1.4rem; }
    .section-header { display:flex; align-items:center; gap:.6rem; margin-bottom:.5rem; }
    .section-name { font-size:1.1rem; font-weight:800; }
    .section-name.editable { cursor:text; }
    .section-actions { margin-left:auto; display:flex; gap:.3rem; }
    .group-block { border:1px dashed var(--border); border-radius:var(--radius); padding:.5rem .6rem; margin:.6rem 0; }
    .group-header { display:flex; align-items:center; gap:.5rem; margin-bottom:.4rem; font-weight:700; opacity:.9; }
    .group-header .section-actions { margin-left:auto; }
    .resource-list { display:grid; gap: var(--gap); grid-template-columns: repeat(auto-fill, minmax(240px, 1fr)); min-height: 1rem; }
    .list-empty { color:var(--muted); font-size:.88rem; margin:.2rem 0; }

    .resource-card { display:flex; flex-direction:column; gap:.35rem; background:var(--card-bg); border:1px solid var(--border); border-radius:var(--radius); padding:.6rem .7rem; color:inherit; text-decoration:none; position:relative; }
    .resource-card:hover { border-color: var(--brand); }
    .resource-card.placeholder { opacity:.35; border-style:dashed; }
    .resource-card.ghost { position:fixed; pointer-events:none; z-index:2000; box-shadow:0 12px 40px rgba(0,0,0,.25); opacity:.95; }
    .card-top { display:flex; align-items:center; gap:.5rem; }
    .card-favicon { width:28px; height:28px; border-radius:6px; background:var(--hover); display:flex; align-items:center; justify-content:center; flex:0 0 auto; overflow:hidden; }
    .card-favicon img { width:18px; height:18px; }
    .card-favicon-letter { font-weight:800; color:var(--brand); }
    .card-info { min-width:0; flex:1; }
    .card-name { font-weight:700; overflow:hidden; text-overflow:ellipsis; white-space:nowrap; }
    .card-url { color:var(--muted); font-size:.8rem; overflow:hidden; text-overflow:ellipsis; white-space:nowrap; }
    .card-desc { margin:0; font-size:.86rem; color:var(--muted); }
    .card-tags { display:flex; flex-wrap:wrap; gap:.25rem; }
    .card-tag { font-size:.72rem; padding:.05rem .45rem; border-radius:999px; background:var(--hover); }
    .card-tools { position:absolute; top:.4rem; right:.4rem; display:flex; gap:.15rem; }
    .drag-handle { color:#9ca3af; cursor:grab; padding:.15rem .3rem; touch-action:none; }
    mark.hl { background: var(--hl); color: inherit; padding: 0 .1rem; border-radius: 3px; }

    .empty-state, .search-no-results, .fatal { text-align:center; padding:3rem 1rem; color:var(--muted); }
    .empty-state .btn { margin:.3rem; }
    .fatal { color:var(--danger); }

    /* Modal */
    .modal { display:none; position:fixed; inset:0; z-index:1000; background:var(--overlay); align-items:center; justify-content:center; padding:1rem; }
    .modal.open { display:flex; }
    .modal-box { background:var(--card-bg); color:var(--text); width:min(560px, 96vw); border-radius:10px; border:1px solid var(--border); box-shadow:0 15px 60px rgba(0,0,0,.25); }
    .modal-head { display:flex; justify-content:space-between; align-items:center; padding:.8rem 1rem; border-bottom:1px solid var(--border); }
    .modal-body { padding:1rem; }
    .modal-foot { display:flex; justify-content:flex-end; gap:.5rem; padding: .8rem 1rem; border-top:1px solid var(--border); }
    .modal h3 { margin:0; font-size:1.05rem; }
    .modal label { display:block; margin:.4rem 0 .2rem; font-weight:600; }
    .modal input[type="text"], .modal input[type="password"], .modal textarea, .modal select {
      width:100%; padding:.45rem .55rem; border-radius:6px; border:1px solid var(--border); background:var(--card-bg); color:inherit;
    }
    .xbtn { border:0; background:transparent; cursor:pointer; font-size:1.2rem; color:inherit; }

    .context-menu { position:fixed; display:none; z-index:1500; background:var(--card-bg); border:1px solid var(--border); border-radius:var(--radius); box-shadow:0 6px 20px rgba(0,0,0,.12); min-width:180px; }
    .context-menu.open { display:block; }
    .context-menu button { width:100%; text-align:left; background:none; border:0; padding:.45rem .7rem; cursor:pointer; font-size:0.9rem; display:flex; align-items:center; gap:.5rem; color:inherit; }
    .context-menu button:hover { background:var(--hover); }
  </style>
</head>
<body data-edit="{{ '1' if edit_mode else '0' }}">
  <header>
    <div class="titlebar"><i class="fa-solid fa-layer-group"></i> Resource Hub</div>
    <div class="top-right">
      <div class="search-wrap">
        <input id="searchInput" type="search" value="{{ query }}" placeholder="Search resources... (Ctrl+K)" autocomplete="off">
        <button id="searchClear" class="search-clear {{ 'visible' if query }}" type="button" title="Clear"><i class="fa-solid fa-xmark"></i></button>
      </div>
      {% if edit_mode %}
        <button class="btn small" type="button" data-action="add-section"><i class="fa-solid fa-plus"></i> Section</button>
        <button class="btn small" type="button" data-action="add-resource"><i class="fa-solid fa-plus"></i> Resource</button>
        <button class="btn ghost small" type="button" data-open="keyModal" title="Change edit key"><i class="fa-solid fa-key"></i></button>
        <form method="post" action="{{ url_for('lock') }}" style="margin:0">
          <button class="btn ghost small" type="submit" title="Leave edit mode"><i class="fa-solid fa-lock-open"></i> Lock</button>
        </form>
      {% elif key_configured %}
        <button class="btn ghost small" type="button" data-open="unlockModal" {{ 'disabled' if locked_out }} title="Enter edit mode"><i class="fa-solid fa-lock"></i> Edit</button>
      {% else %}
        <button class="btn ghost small" type="button" data-open="keyModal" title="Set the shared edit key"><i class="fa-solid fa-key"></i> Set edit key</button>
      {% endif %}
      <button id="themeToggle" class="btn ghost small" type="button" title="Toggle dark mode"><i class="fa-solid fa-moon"></i></button>
    </div>
  </header>

  <div class="container">
    {% with messages = get_flashed_messages(with_categories=true) %}
      {% for category,msg in messages %}
        <div class="flash {{ category }}">{{ msg }}</div>
      {% endfor %}
    {% endwith %}

    <main id="main">{{ content|safe }}</main>
  </div>

  <!-- Unlock -->
  <div id="unlockModal" class="modal">
    <form class="modal-box" method="post" action="{{ url_for('unlock') }}">
      <div class="modal-head"><h3>Enter edit key</h3><button class="xbtn" type="button" data-close="unlockModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="unlockKey">Edit key</label>
        <input type="password" name="key" id="unlockKey" autocomplete="current-password" required>
      </div>
      <div class="modal-foot"><button class="btn" type="submit"><i class="fa-solid fa-lock-open"></i> Unlock</button></div>
    </form>
  </div>

  <!-- Set / change key -->
  <div id="keyModal" class="modal">
    <form class="modal-box" method="post" action="{{ url_for('set_key') }}">
      <div class="modal-head"><h3>{{ 'Change' if key_configured else 'Set' }} edit key</h3><button class="xbtn" type="button" data-close="keyModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="newKey">New edit key</label>
        <input type="password" name="key" id="newKey" autocomplete="new-password" required>
      </div>
      <div class="modal-foot"><button class="btn" type="submit"><i class="fa-solid fa-key"></i> Save</button></div>
    </form>
  </div>

  {% if edit_mode %}
  <!-- Section -->
  <div id="sectionModal" class="modal">
    <form class="modal-box" method="post" action="{{ url_for('add_section') }}" data-validate>
      <div class="modal-head"><h3>Add section</h3><button class="xbtn" type="button" data-close="sectionModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="secName">Section name</label>
        <input type="text" name="name" id="secName" data-required placeholder="e.g. Python">
      </div>
      <div class="modal-foot"><button class="btn" type="submit">Save</button></div>
    </form>
  </div>

  <!-- Group -->
  <div id="groupModal" class="modal">
    <form class="modal-box" method="post" action="{{ url_for('add_group') }}" data-validate>
      <div class="modal-head"><h3>Add group</h3><button class="xbtn" type="button" data-close="groupModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <input type="hidden" name="section_id" id="groupSection">
        <label for="groupName">Group name</label>
        <input type="text" name="name" id="groupName" data-required>
      </div>
      <div class="modal-foot"><button class="btn" type="submit">Save</button></div>
    </form>
  </div>

  <!-- Resource add/edit -->
  <div id="resourceModal" class="modal">
    <form class="modal-box" method="post" action="{{ url_for('add_resource') }}" data-validate>
      <div class="modal-head"><h3 id="resourceModalTitle">Add resource</h3><button class="xbtn" type="button" data-close="resourceModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="resName">Name</label>
        <input type="text" name="name" id="resName" data-required>
        <label for="resUrl">URL</label>
        <input type="text" name="url" id="resUrl" data-required placeholder="example.com">
        <label for="resDesc">Description</label>
        <textarea name="desc" id="resDesc" rows="3"></textarea>
        <label for="resTags">Tags (comma separated)</label>
        <input type="text" name="tags" id="resTags">
        <label for="resSection">Section</label>
        <select name="section_id" id="resSection" data-required></select>
        <div id="resGroupRow">
          <label for="resGroup">Group</label>
          <select name="group_id" id="resGroup"></select>
        </div>
      </div>
      <div class="modal-foot"><button class="btn" type="submit">Save</button></div>
    </form>
  </div>

  <!-- Move / copy -->
  <div id="moveModal" class="modal">
    <form class="modal-box" method="post" data-validate>
      <div class="modal-head"><h3>Move or copy <span id="moveResourceName"></span></h3><button class="xbtn" type="button" data-close="moveModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="moveTarget">Target section</label>
        <select name="section_id" id="moveTarget" data-required></select>
        <label><input type="radio" name="action" value="move" checked> Move</label>
        <label><input type="radio" name="action" value="copy"> Copy</label>
      </div>
      <div class="modal-foot"><button class="btn" type="submit">Confirm</button></div>
    </form>
  </div>

  <!-- Group reassign -->
  <div id="assignModal" class="modal">
    <form class="modal-box" method="post">
      <div class="modal-head"><h3>Set group</h3><button class="xbtn" type="button" data-close="assignModal"><i class="fa-solid fa-xmark"></i></button></div>
      <div class="modal-body">
        <label for="assignGroup">Group</label>
        <select name="group_id" id="assignGroup"></select>
      </div>
      <div class="modal-foot"><button class="btn" type="submit">Save</button></div>
    </form>
  </div>

  <div id="contextMenu" class="context-menu">
    <button type="button" data-ctx="edit"><i class="fa-solid fa-pen-to-square"></i> Edit</button>
    <button type="button" data-ctx="move"><i class="fa-solid fa-right-left"></i> Move / copy…</button>
    <button type="button" data-ctx="group"><i class="fa-solid fa-folder"></i> Set group…</button>
    <button type="button" data-ctx="delete"><i class="fa-solid fa-trash"></i> Delete</button>
  </div>
  {% endif %}

  <script>{{ script|safe }}</script>
</body>
</html>
"""

CARD = """
{% macro card(c, query) -%}
<a class="resource-card" href="{{ c.url }}" target="_blank" rel="noopener noreferrer" data-resource-id="{{ c.id }}">
  <div class="card-top">
    <div class="card-favicon">
      {% if c.favicon %}
        <img src="{{ c.favicon }}" alt="" referrerpolicy="no-referrer"
             onerror="var n=this.nextElementSibling; if(n) n.style.display='inline'; this.remove();">
        <span class="card-favicon-letter" style="display:none">{{ c.initial }}</span>
      {% else %}
        <span class="card-favicon-letter">{{ c.initial }}</span>
      {% endif %}
    </div>
    <div class="card-info">
      <div class="card-name" title="{{ c.name }}">{{ c.name|hilite(query) }}</div>
      <div class="card-url">{{ c.domain|hilite(query) }}</div>
    </div>
  </div>
  {% if c.desc %}<p class="card-desc">{{ c.desc|hilite(query) }}</p>{% endif %}
  {% if c.tags %}
    <div class="card-tags">{% for t in c.tags %}<span class="card-tag">{{ t|hilite(query) }}</span>{% endfor %}</div>
  {% endif %}
  {% if c.actions %}
    <div class="card-tools">
      {% if 'drag' in c.actions %}<span class="drag-handle" title="Drag to reorder"><i class="fa-solid fa-grip-vertical"></i></span>{% endif %}
      {% if 'options' in c.actions %}<button class="btn-icon card-menu-btn" type="button" data-resource-id="{{ c.id }}" title="Options"><i class="fa-solid fa-ellipsis"></i></button>{% endif %}
    </div>
  {% endif %}
</a>
{%- endmacro %}
"""

MAIN = CARD + """
{% if view.kind == "empty" %}
  <div class="empty-state">
    <h2>No sections yet</h2>
    {% if view.actions %}
      <p>Create a section, then start saving resources into it.</p>
      {% if 'add_section' in view.actions %}<button class="btn" type="button" data-action="add-section"><i class="fa-solid fa-plus"></i> Add section</button>{% endif %}
      {% if 'add_resource' in view.actions %}<button class="btn ghost" type="button" data-action="add-resource"><i class="fa-solid fa-plus"></i> Add resource</button>{% endif %}
    {% else %}
      <p>Nothing has been shared here yet.</p>
    {% endif %}
  </div>
{% elif view.kind == "no_results" %}
  <div class="search-no-results">No resources found for "{{ view.query }}"</div>
{% else %}
  {% for s in view.sections %}
  <section class="section-block" data-section-id="{{ s.id }}">
    <div class="section-header">
      <span class="section-name{{ ' editable' if s.editable_name }}" data-kind="section" data-id="{{ s.id }}"
            {% if s.editable_name %}title="Click to rename"{% endif %}>{{ s.name }}</span>
      <span class="pill">{{ s.count }}</span>
      {% if s.actions %}
      <div class="section-actions">
        {% if 'add_resource' in s.actions %}<button class="btn small ghost" type="button" data-action="add-resource" data-section-id="{{ s.id }}"><i class="fa-solid fa-plus"></i> Resource</button>{% endif %}
        {% if 'add_group' in s.actions %}<button class="btn small ghost" type="button" data-action="add-group" data-section-id="{{ s.id }}"><i class="fa-solid fa-folder-plus"></i> Group</button>{% endif %}
        {% if 'delete' in s.actions %}<button class="btn-icon" type="button" data-action="delete-section" data-section-id="{{ s.id }}" title="Delete section"><i class="fa-solid fa-trash"></i></button>{% endif %}
      </div>
      {% endif %}
    </div>

    <div class="resource-list" data-section-id="{{ s.id }}" data-group-id="">
      {% for c in s.ungrouped %}{{ card(c, view.query) }}{% endfor %}
    </div>
    {% if not s.ungrouped and not s.groups %}<p class="list-empty">No resources yet.</p>{% endif %}

    {% for g in s.groups %}
    <div class="group-block" data-group-id="{{ g.id }}">
      <div class="group-header">
        <i class="fa-regular fa-folder"></i>
        <span class="section-name{{ ' editable' if g.editable_name }}" data-kind="group" data-id="{{ g.id }}">{{ g.name }}</span>
        <span class="pill">{{ g.count }}</span>
        {% if g.actions and 'delete' in g.actions %}
        <div class="section-actions">
          <button class="btn-icon" type="button" data-action="delete-group" data-group-id="{{ g.id }}" title="Delete group"><i class="fa-solid fa-trash"></i></button>
        </div>
        {% endif %}
      </div>
      <div class="resource-list" data-section-id="{{ s.id }}" data-group-id="{{ g.id }}">
        {% for c in g.resources %}{{ card(c, view.query) }}{% endfor %}
      </div>
      {% if not g.resources %}<p class="list-empty">Empty group.</p>{% endif %}
    </div>
    {% endfor %}
  </section>
  {% endfor %}
{% endif %}
{% if hub_data %}<script type="application/json" id="hubData">{{ hub_data|tojson }}</script>{% endif %}
"""

FATAL = """
<div class="fatal">
  <h2><i class="fa-solid fa-triangle-exclamation"></i> Could not load your resources</h2>
  <p>{{ message }}</p>
  <p class="muted">Nothing was changed. Fix the data store and reload the page.</p>
</div>
"""

SCRIPT = r"""
(function(){
  const EDIT = document.body.dataset.edit === '1';
  const main = document.getElementById('main');
  const jsonHeaders = {'Accept': 'application/json', 'X-Requested-With': 'fetch'};

  // Theme toggle
  (function(){
    const key = 'theme';
    const btn = document.getElementById('themeToggle');
    function apply(t){
      document.documentElement.classList.toggle('dark', t === 'dark');
      if(btn) btn.innerHTML = (t === 'dark') ? '<i class="fa-solid fa-sun"></i>' : '<i class="fa-solid fa-moon"></i>';
    }
    let stored = localStorage.getItem(key) || 'dark';
    apply(stored);
    if(btn) btn.addEventListener('click', function(){
      stored = (stored === 'dark') ? 'light' : 'dark';
      localStorage.setItem(key, stored);
      apply(stored);
    });
  })();

  // Modals
  function openModal(id){
    const m = document.getElementById(id);
    if(!m) return;
    m.classList.add('open');
    const first = m.querySelector('input:not([type=hidden]), select, textarea');
    if(first) setTimeout(() => first.focus(), 50);
  }
  function closeModal(id){ const m = document.getElementById(id); if(m) m.classList.remove('open'); }

  // Client-side required fields: focus the first empty one, do not submit.
  document.querySelectorAll('form[data-validate]').forEach(f => {
    f.addEventListener('submit', e => {
      const bad = [...f.querySelectorAll('[data-required]')].find(el => !el.value.trim());
      if(bad){ e.preventDefault(); bad.focus(); }
    });
  });

  // Search + fragment refresh
  const searchInput = document.getElementById('searchInput');
  const searchClear = document.getElementById('searchClear');
  let searchTimer = null;
  function query(){ return searchInput.value.trim().toLowerCase(); }
  async function refresh(){
    const q = query();
    const rsp = await fetch(`/fragment?q=${encodeURIComponent(q)}`, {credentials: 'same-origin'});
    main.innerHTML = await rsp.text();
    const url = q ? `/?q=${encodeURIComponent(q)}` : '/';
    history.replaceState(null, '', url);
    attachDrag();
  }
  searchInput.addEventListener('input', () => {
    searchClear.classList.toggle('visible', searchInput.value.length > 0);
    clearTimeout(searchTimer);
    searchTimer = setTimeout(refresh, 120);
  });
  searchClear.addEventListener('click', () => {
    searchInput.value = '';
    searchClear.classList.remove('visible');
    refresh();
    searchInput.focus();
  });
  document.addEventListener('keydown', e => {
    if(e.key === 'Escape'){
      closeContextMenu();
      document.querySelectorAll('.modal.open').forEach(m => m.classList.remove('open'));
    }
    if((e.ctrlKey || e.metaKey) && e.key === 'k'){
      e.preventDefault();
      searchInput.focus();
      searchInput.select();
    }
  });

  async function post(url, body){
    const rsp = await fetch(url, {method: 'POST', body, credentials: 'same-origin', headers: jsonHeaders});
    let data = {};
    try { data = await rsp.json(); } catch(e) {}
    if(!rsp.ok && data.error) alert(data.error);
    return data;
  }

  // Context menu
  const menu = document.getElementById('contextMenu');
  let contextResourceId = null;
  function openContextMenu(rid, x, y){
    contextResourceId = rid;
    menu.style.left = x + 'px';
    menu.style.top = y + 'px';
    menu.classList.add('open');
    requestAnimationFrame(() => {
      const rect = menu.getBoundingClientRect();
      if(rect.right > window.innerWidth - 8) menu.style.left = (x - rect.width) + 'px';
      if(rect.bottom > window.innerHeight - 8) menu.style.top = (y - rect.height) + 'px';
    });
  }
  function closeContextMenu(){ if(menu) menu.classList.remove('open'); }

  // Editor data (present only in edit mode)
  function hubData(){
    const el = document.getElementById('hubData');
    return el ? JSON.parse(el.textContent) : {sections: [], groups: [], resources: []};
  }
  function fillSelect(sel, items, selected, blank){
    sel.innerHTML = '';
    if(blank !== undefined){
      const o = document.createElement('option'); o.value = ''; o.textContent = blank; sel.appendChild(o);
    }
    items.forEach(it => {
      const o = document.createElement('option');
      o.value = it.id; o.textContent = it.name;
      sel.appendChild(o);
    });
    if(selected !== undefined && selected !== null) sel.value = selected;
  }
  function fillGroups(sel, sectionId, selected){
    fillSelect(sel, hubData().groups.filter(g => g.section_id === sectionId), selected || '', '(ungrouped)');
  }

  function openResourceModal(resourceId, sectionId){
    const data = hubData();
    if(!data.sections.length){ alert('Please add a section first.'); openModal('sectionModal'); return; }
    const m = document.getElementById('resourceModal');
    const form = m.querySelector('form');
    const secSel = document.getElementById('resSection');
    const grpSel = document.getElementById('resGroup');
    fillSelect(secSel, data.sections, sectionId || data.sections[0].id);
    secSel.onchange = () => fillGroups(grpSel, secSel.value);
    if(resourceId){
      const r = data.resources.find(x => x.id === resourceId);
      document.getElementById('resourceModalTitle').textContent = 'Edit resource';
      form.action = `/resources/${resourceId}/edit`;
      document.getElementById('resName').value = r.name;
      document.getElementById('resUrl').value = r.url;
      document.getElementById('resDesc').value = r.desc || '';
      document.getElementById('resTags').value = (r.tags || []).join(', ');
      secSel.value = r.section_id;
      document.getElementById('resGroupRow').style.display = 'none';
    } else {
      document.getElementById('resourceModalTitle').textContent = 'Add resource';
      form.action = '/resources/add';
      ['resName', 'resUrl', 'resDesc', 'resTags'].forEach(id => document.getElementById(id).value = '');
      document.getElementById('resGroupRow').style.display = '';
      fillGroups(grpSel, secSel.value);
    }
    openModal('resourceModal');
  }

  // Inline rename
  function startInlineRename(el){
    const original = el.textContent;
    el.contentEditable = 'true';
    el.focus();
    const range = document.createRange();
    range.selectNodeContents(el);
    range.collapse(false);
    const sel = window.getSelection();
    sel.removeAllRanges();
    sel.addRange(range);
    let done = false;
    async function finish(save){
      if(done) return;
      done = true;
      el.contentEditable = 'false';
      const name = el.textContent.trim();
      if(save && name && name !== original){
        const fd = new FormData(); fd.append('name', name);
        await post(`/${el.dataset.kind === 'group' ? 'groups' : 'sections'}/${el.dataset.id}/rename`, fd);
      }
      refresh();
    }
    el.addEventListener('blur', () => finish(true), {once: true});
    el.addEventListener('keydown', ev => {
      if(ev.key === 'Enter'){ ev.preventDefault(); el.blur(); }
      if(ev.key === 'Escape'){ el.textContent = original; finish(false); }
    });
  }

  // Delegated clicks
  document.addEventListener('click', async e => {
    if(menu && !e.target.closest('#contextMenu')) closeContextMenu();

    const closeBtn = e.target.closest('[data-close]');
    if(closeBtn){ closeModal(closeBtn.dataset.close); return; }
    if(e.target.classList.contains('modal')){ e.target.classList.remove('open'); return; }
    const opener = e.target.closest('[data-open]');
    if(opener){ openModal(opener.dataset.open); return; }
    if(!EDIT) return;

    const act = e.target.closest('[data-action]');
    if(act){
      const a = act.dataset.action;
      if(a === 'add-section'){ openModal('sectionModal'); return; }
      if(a === 'add-resource'){ openResourceModal(null, act.dataset.sectionId); return; }
      if(a === 'add-group'){ document.getElementById('groupSection').value = act.dataset.sectionId; openModal('groupModal'); return; }
      if(a === 'delete-section'){
        if(!confirm('Delete this section, its groups and all its resources?')) return;
        await post(`/sections/${act.dataset.sectionId}/delete`); refresh(); return;
      }
      if(a === 'delete-group'){
        if(!confirm('Delete this group? Its resources become ungrouped.')) return;
        await post(`/groups/${act.dataset.groupId}/delete`); refresh(); return;
      }
    }

    const editable = e.target.closest('.section-name.editable');
    if(editable && editable.contentEditable !== 'true'){ startInlineRename(editable); return; }

    // Card menu button: keep the <a> card from navigating
    const menuBtn = e.target.closest('.card-menu-btn');
    if(menuBtn){
      e.preventDefault();
      e.stopPropagation();
      const rect = menuBtn.getBoundingClientRect();
      openContextMenu(menuBtn.dataset.resourceId, rect.left, rect.bottom + 6);
      return;
    }
    if(e.target.closest('.drag-handle')){ e.preventDefault(); return; }

    const ctx = e.target.closest('[data-ctx]');
    if(ctx){
      closeContextMenu();
      const data = hubData();
      const r = data.resources.find(x => x.id === contextResourceId);
      if(!r) return;
      const c = ctx.dataset.ctx;
      if(c === 'edit'){ openResourceModal(r.id); return; }
      if(c === 'move'){
        if(data.sections.length < 2){ alert('You need at least 2 sections to move resources.'); return; }
        document.getElementById('moveResourceName').textContent = `"${r.name}"`;
        const target = data.sections.find(s => s.id !== r.section_id);
        fillSelect(document.getElementById('moveTarget'), data.sections, target ? target.id : null);
        document.querySelector('#moveModal form').action = `/resources/${r.id}/move`;
        openModal('moveModal');
        return;
      }
      if(c === 'group'){
        fillGroups(document.getElementById('assignGroup'), r.section_id, r.group_id);
        document.querySelector('#assignModal form').action = `/resources/${r.id}/group`;
        openModal('assignModal');
        return;
      }
      if(c === 'delete'){
        if(!confirm('Delete this resource?')) return;
        await post(`/resources/${r.id}/delete`); refresh(); return;
      }
    }
  });

  // Drag & drop: pointer events, same-list only, half-height swap.
  let drag = null;

  function listOf(card){ return card ? card.closest('.resource-list') : null; }

  function onPointerDown(e){
    if(drag || e.button !== 0) return;
    const card = e.target.closest('.resource-card');
    if(!card) return;
    e.preventDefault();
    const rect = card.getBoundingClientRect();
    const ghost = card.cloneNode(true);
    ghost.classList.add('ghost');
    ghost.style.width = rect.width + 'px';
    ghost.style.left = rect.left + 'px';
    ghost.style.top = rect.top + 'px';
    document.body.appendChild(ghost);
    card.classList.add('placeholder');
    drag = {card, ghost, list: listOf(card), origin: card.nextSibling,
            dx: e.clientX - rect.left, dy: e.clientY - rect.top};
    document.addEventListener('pointermove', onPointerMove);
    document.addEventListener('pointerup', onPointerUp);
    document.addEventListener('pointercancel', onPointerCancel);
  }

  function onPointerMove(e){
    if(!drag) return;
    drag.ghost.style.left = (e.clientX - drag.dx) + 'px';
    drag.ghost.style.top = (e.clientY - drag.dy) + 'px';
    const under = document.elementFromPoint(e.clientX, e.clientY);
    const target = under ? under.closest('.resource-card') : null;
    if(!target || target === drag.card || target.classList.contains('ghost')) return;
    if(listOf(target) !== drag.list) return;
    const r = target.getBoundingClientRect();
    if(e.clientY < r.top + r.height / 2) drag.list.insertBefore(drag.card, target);
    else drag.list.insertBefore(drag.card, target.nextSibling);
  }

  function endDrag(){
    document.removeEventListener('pointermove', onPointerMove);
    document.removeEventListener('pointerup', onPointerUp);
    document.removeEventListener('pointercancel', onPointerCancel);
    const d = drag;
    drag = null;
    if(d){
      d.ghost.remove();
      d.card.classList.remove('placeholder');
    }
    return d;
  }

  // Cancelled gesture: put the card back and post nothing.
  function onPointerCancel(){
    const d = endDrag();
    if(d) d.list.insertBefore(d.card, d.origin);
  }

  async function onPointerUp(){
    const d = endDrag();
    if(!d) return;
    const list = d.list;
    const ids = [...list.querySelectorAll('.resource-card')].map(c => c.dataset.resourceId);
    const rsp = await fetch('/reorder', {
      method: 'POST',
      credentials: 'same-origin',
      headers: Object.assign({'Content-Type': 'application/json'}, jsonHeaders),
      body: JSON.stringify({section_id: list.dataset.sectionId, group_id: list.dataset.groupId || null, ids})
    }).catch(() => null);
    // On failure the fragment reload puts the persisted order back on screen.
    if(!rsp || !rsp.ok) refresh();
  }

  function attachDrag(){
    if(!EDIT) return;
    main.querySelectorAll('.resource-card .drag-handle').forEach(h => {
      h.addEventListener('pointerdown', onPointerDown);
    });
  }

  attachDrag();
})();
"""
