"""Tests for recovery questions, attempts, and contact details."""

from __future__ import annotations

import pytest

from playerstore.domain.ledgers import ContactDetails, RecoveryQuestions, RecoveryTable
from playerstore.infrastructure.repositories import AccountRepository, RecoveryRepository
from playerstore.infrastructure.store import GameStore


@pytest.fixture
def repo(store: GameStore) -> RecoveryRepository:
    return RecoveryRepository(store)


@pytest.fixture
def pid(store: GameStore) -> int:
    return AccountRepository(store).create_player("alice", "hash")


def _questions(prefix: str = "q") -> RecoveryQuestions:
    return RecoveryQuestions(
        username="alice",
        questions=[f"{prefix}{i}" for i in range(5)],
        answers=[f"a{i}" for i in range(5)],
        date_set=1700000000,
        ip_set="10.0.0.1",
    )


class TestQuestions:
    def test_insert_and_read(self, repo: RecoveryRepository, pid: int) -> None:
        repo.insert_recovery_questions(pid, _questions())
        stored = repo.recovery_questions(pid)
        assert stored is not None
        assert stored.questions == [f"q{i}" for i in range(5)]
        assert stored.ip_set == "10.0.0.1"

    def test_insert_replaces(self, repo: RecoveryRepository, pid: int) -> None:
        repo.insert_recovery_questions(pid, _questions())
        repo.insert_recovery_questions(pid, _questions("new"))
        stored = repo.recovery_questions(pid)
        assert stored is not None
        assert stored.questions[0] == "new0"

    def test_missing(self, repo: RecoveryRepository, pid: int) -> None:
        assert repo.recovery_questions(pid) is None

    def test_pending_change(self, repo: RecoveryRepository, pid: int) -> None:
        repo.insert_recovery_questions(pid, _questions("c"), RecoveryTable.PENDING)
        changes = repo.recovery_changes(pid)
        assert len(changes) == 1
        assert changes[0].previous_pass is None
        repo.cancel_recovery_change(pid)
        assert repo.recovery_changes(pid) == []


class TestPasswords:
    def test_previous_passwords(self, repo: RecoveryRepository, pid: int) -> None:
        repo.insert_recovery_questions(pid, _questions())
        repo.save_previous_passwords(pid, "prev", "earlier")
        assert repo.previous_password(pid) == "prev"
        stored = repo.recovery_questions(pid)
        assert stored is not None and stored.earlier_pass == "earlier"

    def test_attempt_ids_increase(self, repo: RecoveryRepository, pid: int) -> None:
        first = repo.insert_recovery_attempt(pid, "alice", 1, "1.1.1.1")
        assert repo.insert_recovery_attempt(pid, "alice", 2, "1.1.1.1") > first


class TestContactDetails:
    def test_insert_update(self, repo: RecoveryRepository, pid: int) -> None:
        details = ContactDetails(player_id=pid, username="alice", full_name="Alice A", country="NL")
        repo.insert_contact_details(details)
        repo.update_contact_details(details.model_copy(update={"country": "DE"}))
        stored = repo.contact_details(pid)
        assert stored is not None
        assert stored.country == "DE"
        assert stored.full_name == "Alice A"

    def test_missing(self, repo: RecoveryRepository, pid: int) -> None:
        assert repo.contact_details(pid) is None
