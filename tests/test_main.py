from __future__ import annotations

import pytest

from instance_coordinator import main as entrypoint
from instance_coordinator.domain.errors import CoordinationError
from instance_coordinator.infrastructure.sync import InMemorySyncClient


def test_main_reports_invalid_address_and_exits_non_zero(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("COORD_SYNC_BACKEND", "in_memory")
    monkeypatch.setenv("COORD_INSTANCE_ADDRESS", "16.0.0.5")

    assert entrypoint.main() == 1


def test_main_exits_with_unreported_code_for_invalid_settings(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("COORD_SYNC_BACKEND", "http")
    monkeypatch.delenv("COORD_SYNC_SERVICE_URL", raising=False)

    assert entrypoint.main() == entrypoint.EXIT_UNREPORTED


def test_main_exits_with_unreported_code_when_outcome_cannot_be_sent(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _publish_fails(self: InMemorySyncClient, _report: object) -> None:
        raise CoordinationError("collector unreachable")

    monkeypatch.setattr(InMemorySyncClient, "_publish_outcome", _publish_fails)
    monkeypatch.setenv("COORD_SYNC_BACKEND", "in_memory")
    monkeypatch.setenv("COORD_INSTANCE_ADDRESS", "16.0.0.5")

    assert entrypoint.main() == entrypoint.EXIT_UNREPORTED


def test_run_exits_process_with_main_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(entrypoint, "main", lambda: 1)

    with pytest.raises(SystemExit) as excinfo:
        entrypoint.run()

    assert excinfo.value.code == 1


def test_main_exits_with_unreported_code_for_blank_data_interface(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("COORD_SYNC_BACKEND", "in_memory")
    monkeypatch.setenv("COORD_DATA_INTERFACE", "")
    monkeypatch.delenv("COORD_INSTANCE_ADDRESS", raising=False)

    assert entrypoint.main() == entrypoint.EXIT_UNREPORTED


def test_main_exits_with_unreported_code_for_whitespace_sync_service_url(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("COORD_SYNC_BACKEND", "http")
    monkeypatch.setenv("COORD_SYNC_SERVICE_URL", "   ")

    assert entrypoint.main() == entrypoint.EXIT_UNREPORTED
