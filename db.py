import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger
from sqlalchemy import create_engine, select as sa_select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from models import Base

load_dotenv()

DATABASE_URL = os.getenv("SUPABASE_DB_URL")
DATABASE_KEY = os.getenv("SUPABASE_DB_KEY")


class StoreError(Exception):
    """Any failure talking to the response store."""


class ResponseStore:
    """
    Thin handle on the hosted record store.

    The URL points at the database, the key is used as its password. When
    either is missing the handle is still built, but every call fails.
    """

    def __init__(self, url: Optional[str], key: Optional[str]):
        self.url = url
        self.key = key
        self._engine = None

        if not url or not key:
            logger.error(
                "Missing store configuration. "
                "Make sure SUPABASE_DB_URL and SUPABASE_DB_KEY are set."
            )

    @property
    def engine(self):
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self):
        if not self.url:
            raise StoreError("Store URL is not configured")
        try:
            url = make_url(self.url)
        except ArgumentError as e:
            raise StoreError(f"Invalid store URL: {e}") from e

        if url.drivername.startswith("sqlite"):
            return create_engine(url, connect_args={"check_same_thread": False})

        if not self.key:
            raise StoreError("Store access key is not configured")
        return create_engine(url.set(password=self.key), pool_pre_ping=True)

    def _table(self, name: str):
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}")

    def init_schema(self) -> None:
        """Create the tables when missing."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        target = self._table(table)
        try:
            with self.engine.begin() as conn:
                conn.execute(target.insert(), rows)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def select(
        self,
        table: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        target = self._table(table)
        query = sa_select(target)

        for column, value in (filters or {}).items():
            query = query.where(target.c[column] == value)
        if order_by:
            col = target.c[order_by]
            query = query.order_by(col.desc() if descending else col.asc())

        try:
            with self.engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(query)]
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


store = ResponseStore(DATABASE_URL, DATABASE_KEY)


def get_store() -> ResponseStore:
    return store
