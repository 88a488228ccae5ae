"""
End-to-end tests for the HTTP surface.

Tests:
- Per-role API key checks
- Upload / command / download exchange
- Terse error responses
"""

from datetime import timedelta

import pytest

from telemetry_hub import __version__
from telemetry_hub.common.timestamp import utc_now

from .conftest import CLI_KEY, COLLECTOR_KEY, PROBE_KEY, iso


def probe_headers(node_id=7, key=PROBE_KEY):
    return {"X-Api-Key": key, "X-Node-Id": str(node_id)}


def logs_payload(*messages, minutes_ago=10):
    ts = iso(utc_now() - timedelta(minutes=minutes_ago))
    return {"logs": [{"timestamp": ts, "message": m} for m in messages]}


def send_command(client, command, parameters=None):
    body = {"command": command}
    if parameters is not None:
        body["parameters"] = parameters
    return client.post("/command", json=body, headers={"X-Api-Key": CLI_KEY})


class TestAuthentication:

    @pytest.mark.parametrize("method,path,key", [
        ("post", "/update", COLLECTOR_KEY),
        ("get", "/download?last_log_message_id=0", PROBE_KEY),
        ("post", "/command", PROBE_KEY),
    ])
    def test_wrong_role_key_unauthorized(self, client, method, path, key):
        response = client.request(
            method.upper(), path,
            headers={"X-Api-Key": key, "X-Node-Id": "7"},
            json={"logs": [], "command": "ping"},
        )

        assert response.status_code == 401
        assert response.text == "Unauthorized"

    def test_missing_key_unauthorized(self, client):
        response = client.post("/update", headers={"X-Node-Id": "7"}, json={"logs": []})

        assert response.status_code == 401

    def test_header_names_case_insensitive(self, client):
        response = client.post(
            "/update",
            headers={"x-api-key": PROBE_KEY, "x-node-id": "7"},
            json={"logs": []},
        )

        assert response.status_code == 200

    def test_body_decoded_before_key_check(self, client):
        # FastAPI parses the JSON body before running dependencies
        malformed = client.post(
            "/update",
            headers={"X-Node-Id": "7", "Content-Type": "application/json"},
            content=b"{not json",
        )
        well_formed = client.post("/update", headers={"X-Node-Id": "7"}, json={"logs": []})

        assert malformed.status_code == 400
        assert well_formed.status_code == 401

    def test_unset_secret_rejects_everything(self, client, settings):
        settings.cli_api_key = ""

        response = client.post("/command", json={"command": "ping"}, headers={"X-Api-Key": ""})

        assert response.status_code == 401


class TestUpload:

    def test_upload_returns_empty_list(self, client):
        response = client.post("/update", headers=probe_headers(), json=logs_payload("hello"))

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("node_id", ["", "abc", "-3", "1.5", str(2**63), str(2**64)])
    def test_invalid_node_id(self, client, node_id):
        response = client.post(
            "/update",
            headers={"X-Api-Key": PROBE_KEY, "X-Node-Id": node_id},
            json={"logs": []},
        )

        assert response.status_code == 400

    def test_missing_node_id(self, client):
        response = client.post("/update", headers={"X-Api-Key": PROBE_KEY}, json={"logs": []})

        assert response.status_code == 400

    def test_malformed_body(self, client):
        response = client.post(
            "/update",
            headers={**probe_headers(), "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_missing_logs_field(self, client):
        response = client.post("/update", headers=probe_headers(), json={})

        assert response.status_code == 400


class TestDownload:

    @pytest.mark.parametrize("query", [
        "last_log_message_id=-1",
        "last_log_message_id=abc",
        f"last_log_message_id={2**63}",
        f"last_log_message_id={2**70}",
        "",
    ])
    def test_invalid_cursor(self, client, query):
        response = client.get(f"/download?{query}", headers={"X-Api-Key": COLLECTOR_KEY})

        assert response.status_code == 400

    def test_download_exports_old_enough_logs(self, client):
        client.post("/update", headers=probe_headers(3), json=logs_payload("a", "b"))
        client.post("/update", headers=probe_headers(4), json=logs_payload("fresh", minutes_ago=0))

        response = client.get(
            "/download?last_log_message_id=0",
            headers={"X-Api-Key": COLLECTOR_KEY},
        )

        assert response.status_code == 200
        logs = response.json()["logs"]
        assert [log["message"] for log in logs] == ["a", "b"]
        assert [log["item_id"] for log in logs] == [1, 2]
        assert {log["node_id"] for log in logs} == {3}
        assert set(logs[0]) == {"item_id", "timestamp", "node_id", "message"}

        resumed = client.get(
            "/download?last_log_message_id=2",
            headers={"X-Api-Key": COLLECTOR_KEY},
        )
        assert resumed.json() == {"logs": []}


class TestCommand:

    def test_ack_is_plain_ok(self, client):
        response = send_command(client, "reboot")

        assert response.status_code == 200
        assert response.text == "OK"

    def test_missing_command_field(self, client):
        response = client.post("/command", json={"parameters": {}}, headers={"X-Api-Key": CLI_KEY})

        assert response.status_code == 400

    def test_invalid_node_id_parameter(self, client):
        response = send_command(client, "ping", {"node_id": "seven"})

        assert response.status_code == 400

    def test_oversized_period_rejected_and_export_keeps_working(self, client):
        response = send_command(
            client, "set_update_interval", {"active_period": 10**11, "inactive_period": 60}
        )
        assert response.status_code == 400

        download = client.get(
            "/download?last_log_message_id=0",
            headers={"X-Api-Key": COLLECTOR_KEY},
        )
        assert download.status_code == 200

    def test_non_integer_period_still_queued(self, client):
        client.post("/update", headers=probe_headers(7), json=logs_payload("hello"))

        response = send_command(
            client, "set_update_interval", {"active_period": "600", "inactive_period": 60}
        )
        assert response.status_code == 200

        delivered = client.post("/update", headers=probe_headers(7), json={"logs": []})
        assert delivered.json() == [{
            "command": "set_update_interval",
            "parameters": {"active_period": "600", "inactive_period": 60},
        }]


class TestRouting:

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.text == "Not Found"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}


def test_probe_command_exchange(client):
    """Upload, fleet-wide cadence change, targeted ping, drain once."""
    first = client.post("/update", headers=probe_headers(7), json=logs_payload("hello"))
    assert first.json() == []

    assert send_command(
        client, "set_update_interval", {"active_period": 600, "inactive_period": 60}
    ).status_code == 200
    assert send_command(client, "ping", {"node_id": 7}).status_code == 200

    second = client.post("/update", headers=probe_headers(7), json={"logs": []})
    assert second.json() == [
        {"command": "set_update_interval", "parameters": {"active_period": 600, "inactive_period": 60}},
        {"command": "ping"},
    ]

    third = client.post("/update", headers=probe_headers(7), json={"logs": []})
    assert third.json() == []

    # Tracked interval is now 600s: the 10 minute old log is inside the 660s window
    download = client.get(
        "/download?last_log_message_id=0",
        headers={"X-Api-Key": COLLECTOR_KEY},
    )
    assert download.json() == {"logs": []}
