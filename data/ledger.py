"""External category ledger (the P&L chapter's `pnl_data` table).

Rows are only ever inserted for previously unseen category names. Identifiers are
assigned by the database and `name` carries a uniqueness constraint, so inserts are
idempotent upserts that stay safe when several sessions sync at once.
"""

import logging
from typing import Iterable, List, Protocol, Set

from sqlalchemy import Float, Integer, String, UniqueConstraint, create_engine, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from engine.errors import LedgerError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class LedgerCategory(Base):
    """A business-unit row in the P&L ledger."""

    __tablename__ = "pnl_data"
    __table_args__ = (UniqueConstraint("name", name="uq_pnl_data_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rev: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    gm: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fixed: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)


class CategoryLedger(Protocol):
    def existing_names(self, names: Iterable[str]) -> Set[str]:
        ...

    def upsert_names(self, names: Iterable[str]) -> List[str]:
        ...


class SqlCategoryLedger:
    """SQLAlchemy-backed ledger. Works against SQLite and PostgreSQL."""

    def __init__(self, url: str, create_tables: bool = True):
        self.engine = create_engine(url)
        if create_tables:
            Base.metadata.create_all(self.engine)

    def _insert(self):
        if self.engine.dialect.name == "postgresql":
            return pg_insert(LedgerCategory)
        if self.engine.dialect.name == "sqlite":
            return sqlite_insert(LedgerCategory)
        raise LedgerError(f"Unsupported ledger dialect: {self.engine.dialect.name}")

    def existing_names(self, names: Iterable[str]) -> Set[str]:
        names = list(names)
        if not names:
            return set()
        try:
            with Session(self.engine) as session:
                rows = session.scalars(
                    select(LedgerCategory.name).where(LedgerCategory.name.in_(names))
                )
                return set(rows)
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read category ledger: {e}") from e

    def upsert_names(self, names: Iterable[str]) -> List[str]:
        """Insert names that are not yet present. Returns the names actually inserted."""
        names = list(dict.fromkeys(names))
        if not names:
            return []
        try:
            with Session(self.engine) as session, session.begin():
                stmt = (
                    self._insert()
                    .values([{"name": n, "rev": 0.0, "gm": 0.0, "fixed": 0.0} for n in names])
                    .on_conflict_do_nothing(index_elements=["name"])
                    .returning(LedgerCategory.name)
                )
                inserted = list(session.scalars(stmt))
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to insert categories {names}: {e}") from e
        if inserted:
            logger.info("Added categories to ledger: %s", inserted)
        return inserted

    def all_rows(self) -> List[dict]:
        try:
            with Session(self.engine) as session:
                rows = session.scalars(select(LedgerCategory).order_by(LedgerCategory.id))
                return [
                    {"id": r.id, "name": r.name, "rev": r.rev, "gm": r.gm, "fixed": r.fixed}
                    for r in rows
                ]
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read category ledger: {e}") from e
