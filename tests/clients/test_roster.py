import json

import httpx
import pytest

from hansard_mine.clients import RosterClient, RosterClientError, load_roster_file, parse_roster


class DummyClient(RosterClient):
    def __init__(self, **kwargs):
        super().__init__(base_url="https://example.invalid/api/", api_key="secret", **kwargs)


def test_fetch_members_uses_members_path(monkeypatch):
    client = DummyClient(members_path="mps")
    captured = []

    def fake_request(method, path, params=None):
        captured.append((method, path))
        return {"members": [{"id": 7, "nama": "John Tan", "kawasan": "Kota Bharu", "parti": "PH"}]}

    monkeypatch.setattr(client, "_request", fake_request)

    members = client.fetch_members()

    assert captured == [("GET", "/mps")]
    assert members[0].id == "7"
    assert members[0].name == "John Tan"
    assert members[0].constituency == "Kota Bharu"
    assert members[0].party == "PH"


def test_request_sends_bearer_token_and_parses_json():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"name": "Lim Wei Ming", "constituency": "Petaling Jaya"}])

    client = DummyClient()
    client._client = httpx.Client(transport=httpx.MockTransport(handler))

    members = client.fetch_members()

    assert str(seen[0].url) == "https://example.invalid/api/members"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert members[0].id == ""
    client.close()


def test_unauthorised_response_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403)

    client = DummyClient(max_retries=3)
    client._client = httpx.Client(transport=httpx.MockTransport(handler))

    with pytest.raises(RosterClientError, match="API key"):
        client.fetch_members()
    assert len(calls) == 1


def test_server_errors_are_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    client = DummyClient(max_retries=2)
    client._client = httpx.Client(transport=httpx.MockTransport(handler))

    with pytest.raises(RosterClientError):
        client.fetch_members()
    assert len(calls) == 2


def test_parse_roster_requires_name_and_constituency():
    with pytest.raises(RosterClientError):
        parse_roster([{"name": "Nobody"}])
    with pytest.raises(RosterClientError):
        parse_roster("not a list")


def test_load_roster_file(tmp_path):
    path = tmp_path / "roster.json"
    path.write_text(
        json.dumps({"data": [{"id": "m-raj", "name": "Rajesh a/l Kumar", "constituency": "Ipoh Timur"}]}),
        encoding="utf8",
    )

    members = load_roster_file(path)

    assert [(m.id, m.name, m.party) for m in members] == [("m-raj", "Rajesh a/l Kumar", None)]
