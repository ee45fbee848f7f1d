"""SQLModel implementations of the ledger repository and import store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col, select

from ...domain.repositories.ledger import PropertyRef
from ...models.ledger import LedgerEntry
from ...models.property import Property
from ..database import SessionFactory

_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}

# Columns refreshed from the incoming row when duplicates are not ignored.
_UPDATABLE_COLUMNS = (
    "occurred_on",
    "kind",
    "category",
    "amount",
    "vendor",
    "description",
    "property_id",
    "source",
)


class SQLModelLedgerStore:
    """Fingerprint-keyed bulk writer used by the CSV importer."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def upsert(
        self,
        rows: Sequence[dict[str, Any]],
        *,
        conflict_key: str = "fingerprint",
        ignore_duplicates: bool = True,
    ) -> list[dict[str, Any]]:
        """Insert ``rows``, skipping (or updating) those whose ``conflict_key`` exists.

        Returns the ``id`` and conflict key of each row actually written.
        """

        if not rows:
            return []
        now = datetime.now(timezone.utc)
        payload = [{"created_at": now, **row} for row in rows]
        key_column = getattr(LedgerEntry, conflict_key)

        with self.session_factory() as session:
            dialect = session.get_bind().dialect.name
            insert = _INSERTS.get(dialect)
            if insert is None:
                raise NotImplementedError(f"Upsert is not supported for the {dialect!r} dialect")

            stmt = insert(LedgerEntry).values(payload)
            if ignore_duplicates:
                stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_key])
            else:
                stmt = stmt.on_conflict_do_update(
                    index_elements=[conflict_key],
                    set_={name: stmt.excluded[name] for name in _UPDATABLE_COLUMNS},
                )
            stmt = stmt.returning(col(LedgerEntry.id), key_column)
            result = session.execute(stmt)
            return [{"id": row[0], conflict_key: row[1]} for row in result.all()]

    def list_property_directory(self) -> list[PropertyRef]:
        with self.session_factory() as session:
            rows = session.exec(
                select(Property.id, Property.address).order_by(col(Property.id))
            ).all()
            return [PropertyRef(id=row[0], address=row[1]) for row in rows if row[0] is not None]


class SQLModelLedgerRepository:
    """SQLModel-based ledger repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, entry_id: int) -> Optional[LedgerEntry]:
        with self.session_factory() as session:
            obj = session.get(LedgerEntry, entry_id)
            if obj:
                session.expunge(obj)
            return obj

    def search(
        self,
        *,
        kind: Optional[str] = None,
        text: Optional[str] = None,
        limit: int = 1000,
    ) -> list[tuple[LedgerEntry, Optional[str]]]:
        """Latest entries joined with their property address.

        ``text`` matches case-insensitively against address, kind, category,
        vendor and description; the word "rehab" also matches rehab rows.
        """

        with self.session_factory() as session:
            statement = select(LedgerEntry, Property.address).join(
                Property, col(LedgerEntry.property_id) == col(Property.id), isouter=True
            )
            if kind:
                statement = statement.where(LedgerEntry.kind == kind)

            needle = (text or "").strip().lower()
            if needle:
                pattern = f"%{needle}%"
                clauses = [
                    func.lower(func.coalesce(Property.address, "")).like(pattern),
                    func.lower(LedgerEntry.kind).like(pattern),
                    func.lower(LedgerEntry.category).like(pattern),
                    func.lower(func.coalesce(LedgerEntry.vendor, "")).like(pattern),
                    func.lower(func.coalesce(LedgerEntry.description, "")).like(pattern),
                ]
                if needle in "rehab":
                    clauses.append(col(LedgerEntry.is_rehab).is_(True))
                statement = statement.where(or_(*clauses))

            statement = statement.order_by(
                col(LedgerEntry.occurred_on).desc(), col(LedgerEntry.id).desc()
            ).limit(limit)
            rows = [(entry, address) for entry, address in session.exec(statement).all()]
            session.expunge_all()
            return rows

    def create(self, entry: LedgerEntry) -> LedgerEntry:
        with self.session_factory() as session:
            session.add(entry)
            session.flush()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def update(self, entry: LedgerEntry) -> LedgerEntry:
        with self.session_factory() as session:
            merged = session.merge(entry)
            session.flush()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, entry_id: int) -> None:
        with self.session_factory() as session:
            obj = session.get(LedgerEntry, entry_id)
            if obj:
                session.delete(obj)

    def set_receipt_link(self, entry_id: int, link: str) -> Optional[LedgerEntry]:
        with self.session_factory() as session:
            obj = session.get(LedgerEntry, entry_id)
            if obj is None:
                return None
            obj.receipt_link = link
            session.add(obj)
            session.flush()
            session.expunge(obj)
            return obj

    def list_closing_costs(self) -> list[LedgerEntry]:
        """Rows tagged ``closing``, or untagged rows whose category mentions closing."""

        with self.session_factory() as session:
            statement = (
                select(LedgerEntry)
                .where(
                    or_(
                        LedgerEntry.cost_tag == "closing",
                        (col(LedgerEntry.cost_tag).is_(None))
                        & func.lower(LedgerEntry.category).like("%closing%"),
                    )
                )
                .order_by(col(LedgerEntry.occurred_on).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_rehab_entries(self) -> list[LedgerEntry]:
        with self.session_factory() as session:
            statement = select(LedgerEntry).where(col(LedgerEntry.is_rehab).is_(True))
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
