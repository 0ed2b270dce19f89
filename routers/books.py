import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

import models, schemas
from config import settings
from database import get_db
from deadline import Deadline
from errors import EditConflict, RecordNotFound
from filters import Filters
from repository import Models

router = APIRouter(prefix="/books", tags=["Books"])
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"
CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"


def get_models(db: Session = Depends(get_db)) -> Models:
    return Models.from_session(db)


def get_deadline() -> Deadline:
    return Deadline.after(settings.REQUEST_TIMEOUT_SECONDS)


def _split_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


# Add Book
@router.post("/", response_model=schemas.BookOut, status_code=status.HTTP_201_CREATED)
def add_book(
    book: schemas.BookCreate,
    response: Response,
    store: Models = Depends(get_models),
    deadline: Deadline = Depends(get_deadline),
):
    new_book = models.Book(
        title=book.title,
        content=book.content,
        year=book.year,
        pages=book.pages,
        genres=book.genres,
    )
    store.books.insert(new_book, deadline)

    logger.info(f"Created book id={new_book.id}")
    response.headers["Location"] = f"/books/{new_book.id}"
    return new_book


# List / search Books
@router.get("/", response_model=schemas.BookListResponse)
def list_books(
    title: str = Query(default=""),
    content: str = Query(default=""),
    genres: str | None = Query(default=None, description="Comma-separated genres"),
    page: int = Query(default=1),
    page_size: int = Query(default=20),
    sort: str = Query(default="id"),
    store: Models = Depends(get_models),
    deadline: Deadline = Depends(get_deadline),
):
    try:
        filters = Filters(page=page, page_size=page_size, sort=sort)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        )

    found, metadata = store.books.search(title, content, _split_csv(genres), filters, deadline)
    return {"books": found, "metadata": metadata}


@router.get("/{book_id}", response_model=schemas.BookOut)
def get_book(
    book_id: int,
    store: Models = Depends(get_models),
    deadline: Deadline = Depends(get_deadline),
):
    try:
        return store.books.get(book_id, deadline)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)


@router.patch("/{book_id}", response_model=schemas.BookOut)
def update_book(
    book_id: int,
    changes: schemas.BookUpdate,
    expected_version: str | None = Header(default=None, alias="X-Expected-Version"),
    store: Models = Depends(get_models),
    deadline: Deadline = Depends(get_deadline),
):
    try:
        db_book = store.books.get(book_id, deadline)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)

    if expected_version and expected_version != str(db_book.version):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_MESSAGE)

    for field, value in changes.model_dump(exclude_none=True).items():
        setattr(db_book, field, value)

    try:
        store.books.update(db_book, deadline)
    except EditConflict:
        logger.info(f"Edit conflict on book id={book_id}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_MESSAGE)

    return db_book


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    store: Models = Depends(get_models),
    deadline: Deadline = Depends(get_deadline),
):
    try:
        store.books.delete(book_id, deadline)
    except RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)

    logger.info(f"Deleted book id={book_id}")
    return {"message": "book successfully deleted"}
