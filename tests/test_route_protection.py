import pytest

from taskboard.config import settings
from taskboard.middleware import is_protected
from tests.helpers import auth

@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/notifications", "/tasks", "/tasks/1", "/profile"])
def test_protected_paths_redirect_without_credentials(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/auth/login"

def test_redirect_target_is_served(client):
    r = client.get("/tasks")
    assert r.status_code == 200
    assert r.json()["message"] == "Sign in required"

@pytest.mark.parametrize("path", ["/health", "/auth/login", "/dashboards", "/tasksX"])
def test_other_paths_pass_through(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code != 307

def test_session_cookie_is_enough(client, user_jwt):
    client.cookies.set(settings.session_cookie_name, user_jwt)
    try:
        assert client.get("/tasks").status_code == 200
    finally:
        client.cookies.clear()

def test_bearer_header_is_enough(client, user_jwt):
    assert client.get("/tasks", headers=auth(user_jwt)).status_code == 200

def test_present_but_invalid_credentials_reach_the_route(client):
    r = client.get("/tasks", headers=auth("nope"), follow_redirects=False)
    assert r.status_code == 401

def test_prefix_matching_respects_segments():
    prefixes = ["/dashboard", "/tasks/"]
    assert is_protected("/dashboard", prefixes)
    assert is_protected("/dashboard/x", prefixes)
    assert is_protected("/tasks/1", prefixes)
    assert not is_protected("/dashboardx", prefixes)
    assert not is_protected("/", prefixes)
