"""Tests for the Flask app."""

import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


class TestIndex:
    def test_renders(self, client) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"/parse" in resp.data


class TestParse:
    def test_ok(self, client) -> None:
        resp = client.post("/parse", json={"curl": "curl -X POST -d 'a=1' https://h.org/post?x=1"})
        assert resp.status_code == 200
        body = resp.get_json()["request"]
        assert body["method"] == "POST"
        assert body["body"] == "a=1"
        assert body["origin"] == "https://h.org"
        assert body["query"] == {"x": "1"}

    def test_no_target(self, client) -> None:
        resp = client.post("/parse", json={"curl": "curl -H 'Accept: */*'"})
        assert resp.status_code == 400
        assert "No http" in resp.get_json()["error"]

    @pytest.mark.parametrize("payload", [{}, {"curl": ""}, {"curl": "   "}, {"curl": 42}])
    def test_missing_field(self, client, payload) -> None:
        resp = client.post("/parse", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Field 'curl' is required"

    def test_not_json(self, client) -> None:
        resp = client.post("/parse", data="not json")
        assert resp.status_code == 400

    @pytest.mark.parametrize("payload", [[1], "x", 3])
    def test_json_not_an_object(self, client, payload) -> None:
        resp = client.post("/parse", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Field 'curl' is required"


class TestPrepare:
    def test_ok(self, client) -> None:
        resp = client.post(
            "/prepare",
            json={"curl": "curl -u me:pw -k -H 'Accept: */*' -d 'a=1' https://h.org/post"},
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["request"]["auth"] == "me:pw"
        assert data["prepared"]["method"] == "POST"
        assert data["prepared"]["url"] == "https://h.org/post"
        assert data["prepared"]["body"] == "a=1"
        assert data["prepared"]["headers"]["Accept"] == "*/*"
        assert data["prepared"]["headers"]["Authorization"].startswith("Basic ")
        assert data["options"]["verify"] is False
        assert data["options"]["timeout"] == app.config["DEFAULT_TIMEOUT"]

    def test_timeouts_from_command(self, client) -> None:
        resp = client.post("/prepare", json={"curl": "curl --connect-timeout 2 --max-time 9 https://h.org/"})
        assert resp.get_json()["options"]["timeout"] == [2, 9]

    def test_no_target(self, client) -> None:
        resp = client.post("/prepare", json={"curl": "curl -X GET"})
        assert resp.status_code == 400
