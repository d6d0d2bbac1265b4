"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from playerstore.services.result import NOT_FOUND, ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="save_player", data={"player_id": 7})
        assert result.ok is True
        assert result.op == "save_player"
        assert result.data == {"player_id": 7}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_helper(self) -> None:
        result = ServiceResult.failure("load_player", NOT_FOUND, "No player 'bob'", player="bob")
        assert result.ok is False
        assert result.data == {}
        assert result.error is not None
        assert result.error.code == NOT_FOUND
        assert result.error.detail == {"player": "bob"}

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="check", data={"count": 0}, meta={"telemetry": {"name": "x"}})
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["count"] == 0
        assert parsed["meta"]["telemetry"]["name"] == "x"

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


class TestServiceError:
    def test_default_detail(self) -> None:
        error = ServiceError(code="CONSTRAINT", message="bad")
        assert error.detail == {}
