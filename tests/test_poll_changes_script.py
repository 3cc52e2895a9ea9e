"""Tests for the command-line change poller."""

from __future__ import annotations

import json

import pytest

from fxrest.rest.errors import TransportError
from fxrest.types import EntityKind
from scripts.poll_changes import load_state, main, run_polls, save_state

ACCOUNT_ID = 701048


def test_missing_state_file_is_empty(tmp_path):
    assert load_state(tmp_path / "watermarks.json") == {}


def test_state_round_trips_through_file(tmp_path):
    path = tmp_path / "watermarks.json"
    save_state(path, {"701048": {"order": 12, "trade": 7}})

    assert json.loads(path.read_text()) == {"701048": {"order": 12, "trade": 7}}
    assert load_state(path) == {"701048": {"order": 12, "trade": 7}}
    assert not (tmp_path / "watermarks.json.tmp").exists()


def test_state_file_must_hold_an_object(tmp_path):
    path = tmp_path / "watermarks.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_state(path)


def test_invalid_environment_exits_with_error(monkeypatch, tmp_path, capsys):
    """Test that a bad setting is reported on stderr rather than as a traceback."""
    monkeypatch.setenv("FXREST_MAX_IN_FLIGHT", "abc")
    state_path = tmp_path / "watermarks.json"

    assert main(["--account", str(ACCOUNT_ID), "--state", str(state_path)]) == 1

    assert "Invalid configuration" in capsys.readouterr().err
    assert not state_path.exists()


@pytest.mark.asyncio
async def test_only_successful_polls_advance_state(client, mock_transport, make_response):
    """Test that a failed trade poll leaves its persisted watermark untouched."""
    mock_transport.send.side_effect = [
        make_response(200, {"created": [13], "updated": [], "deleted": [], "maxOrderId": 13}),
        TransportError("connection refused"),
    ]
    state = {"701048": {"order": 12, "trade": 7}}

    new_state, failures = await run_polls(client, ACCOUNT_ID, [EntityKind.ORDER, EntityKind.TRADE], state)

    assert failures == 1
    assert new_state == {"701048": {"order": 13, "trade": 7}}
    assert state == {"701048": {"order": 12, "trade": 7}}

    first_request = mock_transport.send.call_args_list[0].args[0]
    assert first_request.params == {"maxOrderId": "12"}


@pytest.mark.asyncio
async def test_first_run_starts_from_zero(client, mock_transport, make_response):
    mock_transport.send.return_value = make_response(200, {"opened": [], "updated": [], "closed": [], "maxTradeId": 0})

    new_state, failures = await run_polls(client, ACCOUNT_ID, [EntityKind.TRADE], {})

    assert failures == 0
    assert new_state == {"701048": {"trade": 0}}
    assert mock_transport.send.call_args.args[0].params == {"maxTradeId": "0"}
