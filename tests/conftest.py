"""
Pytest fixtures for resource hub tests.
"""

import pytest

from resource_hub.app import app as flask_app
from resource_hub.controller import HubController
from resource_hub.storage import CSVStore


@pytest.fixture
def store(tmp_path):
    """Fresh CSV store in a temp dir."""
    s = CSVStore(str(tmp_path / "hub.csv"))
    s.ensure()
    return s


@pytest.fixture
def hub(store):
    """Controller in edit mode."""
    h = HubController(store, edit_mode=True)
    yield h
    h.close()


@pytest.fixture
def seeded(hub):
    """Two sections; Python has a Libraries group. Returns the created records."""
    py = hub.create_section("Python")
    web = hub.create_section("Web")
    libs = hub.create_group(py.id, "Libraries")
    data = {
        "python": py,
        "web": web,
        "libs": libs,
        "fluent": hub.create_resource(py.id, "Fluent Python", "example.com/fluent", "A book", "Books, python"),
        "tutorial": hub.create_resource(py.id, "Tutorial", "https://docs.python.org/3/tutorial/"),
        "requests": hub.create_resource(py.id, "Requests", "requests.readthedocs.io", tags="http", group_id=libs.id),
        "flask": hub.create_resource(py.id, "Flask", "flask.palletsprojects.com", group_id=libs.id),
        "mdn": hub.create_resource(web.id, "MDN", "https://developer.mozilla.org", tags="docs"),
    }
    return data


@pytest.fixture
def client(tmp_path):
    flask_app.config.update(TESTING=True, HUB_DATA_FILE=str(tmp_path / "web.csv"))
    with flask_app.test_client() as c:
        yield c


@pytest.fixture
def editor(client):
    """Client whose session is already in edit mode."""
    with client.session_transaction() as s:
        s["edit_mode"] = True
    return client


@pytest.fixture
def web_store(client):
    return CSVStore(flask_app.config["HUB_DATA_FILE"])
