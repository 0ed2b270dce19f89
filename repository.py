import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import asc, delete, desc, func, insert, select, text, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.orm import Session

import models
from config import settings
from deadline import Deadline
from errors import EditConflict, RecordNotFound, StoreError, StoreTimeout
from filters import Filters
from pagination import Metadata, calculate_metadata

logger = logging.getLogger(__name__)

books = models.Book.__table__

# SQLSTATE for "canceling statement due to statement timeout"
QUERY_CANCELED = "57014"

_SELECT_COLUMNS = (
    books.c.id,
    books.c.created_at,
    books.c.title,
    books.c.content,
    books.c.year,
    books.c.pages,
    books.c.genres,
    books.c.version,
)


class BookStore(Protocol):
    def insert(self, book: models.Book, deadline: Optional[Deadline] = None) -> None: ...

    def get(self, book_id: int, deadline: Optional[Deadline] = None) -> models.Book: ...

    def update(self, book: models.Book, deadline: Optional[Deadline] = None) -> None: ...

    def delete(self, book_id: int, deadline: Optional[Deadline] = None) -> None: ...

    def search(
        self,
        title: str,
        content: str,
        genres: Sequence[str],
        filters: Filters,
        deadline: Optional[Deadline] = None,
    ) -> Tuple[List[models.Book], Metadata]: ...


def _is_query_canceled(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code == QUERY_CANCELED


def _to_book(row) -> models.Book:
    fields = {column.name: row._mapping[column.name] for column in _SELECT_COLUMNS}
    return models.Book(**fields)


class BookRepository:
    """Book persistence on PostgreSQL.

    Each call runs as one transaction whose statement timeout is the
    smaller of ``query_timeout`` and whatever is left of the caller's
    deadline.
    """

    def __init__(self, db: Session, query_timeout: float = settings.DB_QUERY_TIMEOUT_SECONDS):
        self.db = db
        self.query_timeout = query_timeout

    def _timeout_ms(self, deadline: Optional[Deadline]) -> int:
        timeout = self.query_timeout
        if deadline is not None:
            timeout = min(timeout, deadline.remaining())
        # statement_timeout = 0 disables the timeout altogether
        return max(1, int(timeout * 1000))

    @contextmanager
    def _transaction(self, operation: str, deadline: Optional[Deadline]):
        if deadline is not None and deadline.expired:
            raise StoreTimeout(f"{operation}: deadline exceeded before contacting the database")

        try:
            self.db.execute(
                text("SELECT set_config('statement_timeout', :ms, true)"),
                {"ms": str(self._timeout_ms(deadline))},
            )
            # checking out a pooled connection may have used up the deadline
            if deadline is not None and deadline.expired:
                raise StoreTimeout(f"{operation}: deadline exceeded waiting for a connection")
            yield
            self.db.commit()
        except DBAPIError as exc:
            self.db.rollback()
            if _is_query_canceled(exc):
                logger.warning(f"{operation} timed out: {exc.orig}")
                raise StoreTimeout(f"{operation}: deadline exceeded") from exc
            logger.exception(f"{operation} failed")
            raise StoreError(f"{operation}: {exc.orig}") from exc
        except SQLAlchemyTimeoutError as exc:
            self.db.rollback()
            logger.warning(f"{operation} timed out waiting for a connection: {exc}")
            raise StoreTimeout(f"{operation}: no connection available before the deadline") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"{operation} failed")
            raise StoreError(f"{operation}: {exc}") from exc
        except Exception:
            self.db.rollback()
            raise

    def insert(self, book: models.Book, deadline: Optional[Deadline] = None) -> None:
        stmt = (
            insert(books)
            .values(
                title=book.title,
                content=book.content,
                year=book.year,
                pages=book.pages,
                genres=list(book.genres),
            )
            .returning(books.c.id, books.c.created_at, books.c.version)
        )

        with self._transaction("insert book", deadline):
            row = self.db.execute(stmt).one()

        book.id = row.id
        book.created_at = row.created_at
        book.version = row.version

    def get(self, book_id: int, deadline: Optional[Deadline] = None) -> models.Book:
        if book_id < 1:
            raise RecordNotFound()

        stmt = select(*_SELECT_COLUMNS).where(books.c.id == book_id)

        with self._transaction("get book", deadline):
            row = self.db.execute(stmt).one_or_none()

        if row is None:
            raise RecordNotFound()
        return _to_book(row)

    def update(self, book: models.Book, deadline: Optional[Deadline] = None) -> None:
        # Zero matched rows means the id is gone or the version moved on.
        # Both are reported as a conflict without a second read.
        stmt = (
            update(books)
            .where(books.c.id == book.id, books.c.version == book.version)
            .values(
                title=book.title,
                content=book.content,
                year=book.year,
                pages=book.pages,
                genres=list(book.genres),
                version=func.gen_random_uuid(),
            )
            .returning(books.c.version)
        )

        with self._transaction("update book", deadline):
            row = self.db.execute(stmt).one_or_none()

        if row is None:
            raise EditConflict()
        book.version = row.version

    def delete(self, book_id: int, deadline: Optional[Deadline] = None) -> None:
        if book_id < 1:
            raise RecordNotFound()

        stmt = delete(books).where(books.c.id == book_id)

        with self._transaction("delete book", deadline):
            result = self.db.execute(stmt)
            rows_affected = result.rowcount

        if rows_affected == 0:
            raise RecordNotFound()

    def search_statement(self, title: str, content: str, genres: Sequence[str], filters: Filters):
        # content is accepted for callers but does not narrow the match
        column = books.c[filters.sort_column()]
        direction = desc if filters.sort_direction() == "DESC" else asc

        stmt = select(func.count().over().label("total_records"), *_SELECT_COLUMNS)
        if title:
            stmt = stmt.where(
                func.to_tsvector("simple", books.c.title).op("@@")(func.plainto_tsquery("simple", title))
            )
        if genres:
            stmt = stmt.where(books.c.genres.contains(list(genres)))

        order = [direction(column)]
        if column is not books.c.id:
            order.append(books.c.id.asc())

        return (
            stmt.order_by(*order)
            .limit(filters.limit())
            .offset(filters.offset())
        )

    def search(
        self,
        title: str,
        content: str,
        genres: Sequence[str],
        filters: Filters,
        deadline: Optional[Deadline] = None,
    ) -> Tuple[List[models.Book], Metadata]:
        stmt = self.search_statement(title, content, genres, filters)

        with self._transaction("search books", deadline):
            rows = self.db.execute(stmt).all()

        if not rows:
            return [], Metadata()

        # Every row carries the same windowed count.
        total_records = rows[0].total_records
        found = [_to_book(row) for row in rows]
        return found, calculate_metadata(total_records, filters.page, filters.page_size)


@dataclass
class Models:
    books: BookStore

    @classmethod
    def from_session(cls, db: Session) -> "Models":
        return cls(books=BookRepository(db))
