"""
Tests for the REST API route functions.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from models.identity import Demographics, IdentityState
from models.status import StreamStatus, StreamStatusInfo
from web.api_models import EventRequest
from web.routes import api


@pytest.fixture
def mock_state(store):
    """Shared state with a real store and a stubbed stream manager."""
    state = MagicMock()
    state.store = store
    state.streams = MagicMock()
    state.streams.list_statuses.return_value = [
        StreamStatusInfo("branch_01", StreamStatus.RUNNING),
        StreamStatusInfo("branch_02", StreamStatus.NO_CAMERA, "Failed to open device 1"),
    ]
    state.streams.get_status.side_effect = lambda sid: {
        s.stream_id: s for s in state.streams.list_statuses.return_value
    }.get(sid)
    state.streams.get_identities.side_effect = lambda sid: [
        IdentityState(
            identity_id=4,
            box=(10.0, 20.0, 30.0, 40.0),
            center=(25.0, 40.0),
            gender="female",
            age=33,
            created_at=1.0,
            last_seen_at=2.5,
            dwell_seconds=1.5,
        )
    ] if sid == "branch_01" else []
    state.get_config_copy.return_value = {"log_path": "logs/test.log"}
    state.uptime_seconds.return_value = 12.0
    return state


class TestBranchRoutes:
    """Branch listing and counters."""

    def test_list_branches(self, mock_state, store):
        store.record_event("branch_01", "in")
        store.record_event("branch_03", "in")
        with patch("web.routes.api.state", mock_state):
            response = api.list_branches()

        assert [b["id"] for b in response["branches"]] == ["branch_01", "branch_02", "branch_03"]
        assert response["global_total_people"] == 1

    def test_get_branch(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            response = api.get_branch("branch_02")

        assert response["name"] == "Westside Mall"
        assert response["stats"]["current_people"] == 0

    def test_get_unknown_branch(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.get_branch("nowhere")

        assert exc.value.status_code == 404

    def test_hourly(self, mock_state, store):
        store.record_event("branch_01", "in")
        with patch("web.routes.api.state", mock_state):
            response = api.get_hourly("branch_01")

        assert len(response) == 24
        assert response[14]["ins"] == 1

    def test_hourly_unknown(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.get_hourly("nowhere")

        assert exc.value.status_code == 404

    def test_toggle_camera(self, mock_state, store):
        with patch("web.routes.api.state", mock_state):
            response = api.toggle_camera("branch_01")

        assert response == {"id": "branch_01", "camera_status": "offline"}
        assert not store.get_branch("branch_01").is_online

    def test_store_not_ready(self, mock_state):
        mock_state.store = None
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.list_branches()

        assert exc.value.status_code == 503


class TestEventRoute:
    """Manual in/out entry."""

    def test_records_in(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            response = api.record_event("branch_01", EventRequest(kind="in"))

        assert response["stats"]["current_people"] == 1
        assert response["stats"]["total_in_today"] == 1

    def test_out_with_dwell(self, mock_state, store):
        store.record_event("branch_01", "in", attributes=Demographics("male", 50))
        with patch("web.routes.api.state", mock_state):
            response = api.record_event("branch_01", EventRequest(kind="out", dwell_seconds=90))

        assert response["stats"]["current_people"] == 0
        assert response["stats"]["avg_dwell_seconds"] == 90

    def test_bad_kind(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.record_event("branch_01", EventRequest(kind="sideways"))

        assert exc.value.status_code == 400

    def test_unknown_branch(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.record_event("nowhere", EventRequest(kind="in"))

        assert exc.value.status_code == 404


class TestStreamRoutes:
    """Per-stream status and tracked identities."""

    def test_list_streams(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            response = api.list_streams()

        assert [(s["stream_id"], s["status"]) for s in response] == [
            ("branch_01", "running"),
            ("branch_02", "no_camera"),
        ]
        assert response[1]["error_message"] == "Failed to open device 1"

    def test_stream_identities(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            response = api.get_stream("branch_01")

        (identity,) = response["identities"]
        assert identity["id"] == 4
        assert identity["box"]["center_x"] == 25.0
        assert identity["gender"] == "female"

    def test_unknown_stream(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            with pytest.raises(HTTPException) as exc:
                api.get_stream("nowhere")

        assert exc.value.status_code == 404

    def test_streams_not_started(self, mock_state):
        mock_state.streams = None
        with patch("web.routes.api.state", mock_state):
            assert api.list_streams() == []
            with pytest.raises(HTTPException) as exc:
                api.get_stream("branch_01")

        assert exc.value.status_code == 503


class TestHealthAndLogs:
    """Operational endpoints."""

    def test_health(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            response = api.health()

        assert response["status"] == "degraded"
        assert response["streams"] == {"running": 1, "no_camera": 1}
        assert response["uptime_seconds"] == 12
        assert "python" in response

    def test_logs_tail(self, mock_state, tmp_path):
        log_file = tmp_path / "app.log"
        log_file.write_text("".join(f"line {i}\n" for i in range(10)))
        mock_state.get_config_copy.return_value = {"log_path": str(log_file)}
        with patch("web.routes.api.state", mock_state):
            response = api.logs_tail(lines=3)

        assert response["lines"] == ["line 7\n", "line 8\n", "line 9\n"]

    def test_logs_missing_file(self, mock_state, tmp_path):
        mock_state.get_config_copy.return_value = {"log_path": str(tmp_path / "missing.log")}
        with patch("web.routes.api.state", mock_state):
            response = api.logs_tail()

        assert "not found" in response["lines"][0]

    def test_config_from_state(self, mock_state):
        with patch("web.routes.api.state", mock_state):
            assert api.get_config() == {"log_path": "logs/test.log"}

    def test_app_mounts_api(self):
        from web.app import create_app

        paths = {route.path for route in create_app().routes}

        assert "/api/branches" in paths
        assert "/api/streams/{stream_id}" in paths
