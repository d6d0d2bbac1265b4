"""Account recovery questions, recovery attempts, and contact details.

Two tables hold recovery questions: the current set (which also keeps the
two previous password hashes) and a pending change request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from playerstore.domain.ledgers import (
    RECOVERY_QUESTION_COUNT,
    ContactDetails,
    RecoveryQuestions,
    RecoveryTable,
)

if TYPE_CHECKING:
    from sqlalchemy import Table

    from playerstore.infrastructure.store import GameStore


def _to_questions(row: Any, *, with_passwords: bool) -> RecoveryQuestions:
    indexes = range(1, RECOVERY_QUESTION_COUNT + 1)
    return RecoveryQuestions(
        username=row["username"],
        questions=[row[f"question{i}"] for i in indexes],
        answers=[row[f"answer{i}"] for i in indexes],
        date_set=row["date_set"],
        ip_set=row["ip_set"],
        previous_pass=row["previous_pass"] if with_passwords else None,
        earlier_pass=row["earlier_pass"] if with_passwords else None,
    )


class RecoveryRepository:
    def __init__(self, store: GameStore) -> None:
        self._store = store

    def _table(self, table: RecoveryTable) -> Table:
        schema = self._store.schema
        return schema.recovery if table is RecoveryTable.CURRENT else schema.change_recovery

    def recovery_questions(
        self,
        player_id: int,
        table: RecoveryTable = RecoveryTable.CURRENT,
    ) -> RecoveryQuestions | None:
        t = self._table(table)
        with self._store.connect("recovery questions") as conn:
            row = conn.execute(select(t).where(t.c.player_id == player_id)).mappings().first()
        if row is None:
            return None
        return _to_questions(row, with_passwords=table is RecoveryTable.CURRENT)

    def recovery_changes(self, player_id: int) -> list[RecoveryQuestions]:
        """Pending recovery-question change requests for *player_id*."""
        t = self._table(RecoveryTable.PENDING)
        with self._store.connect("recovery changes") as conn:
            rows = conn.execute(select(t).where(t.c.player_id == player_id)).mappings().all()
        return [_to_questions(r, with_passwords=False) for r in rows]

    def insert_recovery_questions(
        self,
        player_id: int,
        questions: RecoveryQuestions,
        table: RecoveryTable = RecoveryTable.CURRENT,
    ) -> None:
        """Write *questions* for *player_id*, replacing any existing set."""
        t = self._table(table)
        values: dict[str, Any] = {
            "player_id": player_id,
            "username": questions.username,
            "date_set": questions.date_set,
            "ip_set": questions.ip_set,
        }
        for i, (question, answer) in enumerate(zip(questions.questions, questions.answers, strict=True), start=1):
            values[f"question{i}"] = question
            values[f"answer{i}"] = answer
        with self._store.transaction("insert recovery questions") as txn:
            txn.conn.execute(delete(t).where(t.c.player_id == player_id))
            txn.conn.execute(insert(t).values(**values))

    def cancel_recovery_change(self, player_id: int) -> None:
        t = self._table(RecoveryTable.PENDING)
        with self._store.transaction("cancel recovery change") as txn:
            txn.conn.execute(delete(t).where(t.c.player_id == player_id))

    def insert_recovery_attempt(self, player_id: int, username: str, time: int, ip: str) -> int:
        """Log a recovery attempt; returns the generated attempt id."""
        t = self._store.schema.recovery_attempts
        with self._store.transaction("insert recovery attempt") as txn:
            result = txn.conn.execute(insert(t).values(player_id=player_id, username=username, time=time, ip=ip))
        return int(result.inserted_primary_key[0])

    def previous_password(self, player_id: int) -> str | None:
        t = self._store.schema.recovery
        with self._store.connect("previous password") as conn:
            return conn.execute(select(t.c.previous_pass).where(t.c.player_id == player_id)).scalar()

    def save_previous_passwords(self, player_id: int, previous_pass: str, earlier_pass: str) -> None:
        t = self._store.schema.recovery
        with self._store.transaction("save previous passwords") as txn:
            txn.conn.execute(
                update(t)
                .where(t.c.player_id == player_id)
                .values(previous_pass=previous_pass, earlier_pass=earlier_pass)
            )

    # ------------------------------------------------------------------
    # Contact details
    # ------------------------------------------------------------------

    def contact_details(self, player_id: int) -> ContactDetails | None:
        t = self._store.schema.contact_details
        with self._store.connect("contact details") as conn:
            row = conn.execute(select(t).where(t.c.player_id == player_id)).mappings().first()
        return ContactDetails(**row) if row is not None else None

    def insert_contact_details(self, details: ContactDetails) -> None:
        t = self._store.schema.contact_details
        with self._store.transaction("insert contact details") as txn:
            txn.conn.execute(insert(t).values(**details.model_dump()))

    def update_contact_details(self, details: ContactDetails) -> None:
        t = self._store.schema.contact_details
        values = details.model_dump(exclude={"player_id", "username"})
        with self._store.transaction("update contact details") as txn:
            txn.conn.execute(update(t).where(t.c.player_id == details.player_id).values(**values))
