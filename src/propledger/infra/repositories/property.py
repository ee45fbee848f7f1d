"""SQLModel implementation of the property repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete
from sqlmodel import col, select

from ...models.ledger import LedgerEntry
from ...models.property import Property, Underwriting
from ...models.rehab import RehabProject
from ..database import SessionFactory
from .rehab import delete_project_rows


class SQLModelPropertyRepository:
    """SQLModel-based property repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, property_id: int) -> Optional[Property]:
        with self.session_factory() as session:
            obj = session.get(Property, property_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Property]:
        with self.session_factory() as session:
            rows = list(session.exec(select(Property).order_by(col(Property.address))).all())
            session.expunge_all()
            return rows

    def create(self, prop: Property, underwriting: Underwriting) -> Property:
        with self.session_factory() as session:
            session.add(prop)
            session.flush()
            underwriting.property_id = prop.id  # type: ignore[assignment]
            session.add(underwriting)
            session.flush()
            session.refresh(prop)
            session.expunge_all()
            return prop

    def update(self, prop: Property) -> Property:
        with self.session_factory() as session:
            merged = session.merge(prop)
            session.flush()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, property_id: int) -> bool:
        """Delete a property with its underwriting, ledger rows and rehab projects."""

        with self.session_factory() as session:
            prop = session.get(Property, property_id)
            if prop is None:
                return False
            project_ids = list(
                session.exec(
                    select(RehabProject.id).where(RehabProject.property_id == property_id)
                ).all()
            )
            session.execute(delete(LedgerEntry).where(_ledger_clause(property_id, project_ids)))
            for project_id in project_ids:
                delete_project_rows(session, project_id)
            session.execute(
                delete(Underwriting).where(col(Underwriting.property_id) == property_id)
            )
            session.delete(prop)
            return True

    def get_underwriting(self, property_id: int) -> Optional[Underwriting]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Underwriting).where(Underwriting.property_id == property_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def save_underwriting(self, underwriting: Underwriting) -> Underwriting:
        with self.session_factory() as session:
            merged = session.merge(underwriting)
            session.flush()
            session.refresh(merged)
            session.expunge(merged)
            return merged


def _ledger_clause(property_id: int, project_ids: list[int]):
    clause = col(LedgerEntry.property_id) == property_id
    if project_ids:
        clause = clause | col(LedgerEntry.rehab_project_id).in_(project_ids)
    return clause
