from datetime import date
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, PlainSerializer

from pages import format_pages, parse_pages
from pagination import Metadata

MIN_YEAR = 1888
MAX_TITLE_BYTES = 500
MIN_CONTENT_BYTES = 10
MAX_GENRES = 5


def _check_title(value: str) -> str:
    if not value:
        raise ValueError("must be provided")
    if len(value.encode("utf-8")) > MAX_TITLE_BYTES:
        raise ValueError(f"must not be more than {MAX_TITLE_BYTES} bytes long")
    return value


def _check_content(value: str) -> str:
    if len(value.encode("utf-8")) < MIN_CONTENT_BYTES:
        raise ValueError(f"must be at least {MIN_CONTENT_BYTES} bytes long")
    return value


def _check_year(value: int) -> int:
    if value < MIN_YEAR:
        raise ValueError(f"must be greater than or equal to {MIN_YEAR}")
    if value > date.today().year:
        raise ValueError("must not be in the future")
    return value


def _check_pages(value: int) -> int:
    if value <= 0:
        raise ValueError("must be a positive integer")
    return value


def _check_genres(value: list[str]) -> list[str]:
    if len(value) < 1:
        raise ValueError("must contain at least 1 genre")
    if len(value) > MAX_GENRES:
        raise ValueError(f"must not contain more than {MAX_GENRES} genres")
    if len(set(value)) != len(value):
        raise ValueError("must not contain duplicate values")
    return value


Title = Annotated[str, AfterValidator(_check_title)]
Content = Annotated[str, AfterValidator(_check_content)]
Year = Annotated[int, AfterValidator(_check_year)]
PagesText = Annotated[int, BeforeValidator(parse_pages), AfterValidator(_check_pages)]
Genres = Annotated[list[str], AfterValidator(_check_genres)]


class BookCreate(BaseModel):
    title: Title
    content: Content
    year: Year
    pages: PagesText
    genres: Genres


class BookUpdate(BaseModel):
    title: Title | None = None
    content: Content | None = None
    year: Year | None = None
    pages: PagesText | None = None
    genres: Genres | None = None


class BookOut(BaseModel):
    id: int
    title: str
    content: str
    year: int
    pages: Annotated[int, PlainSerializer(format_pages, return_type=str)]
    genres: list[str]
    version: UUID

    model_config = ConfigDict(from_attributes=True)


class BookListResponse(BaseModel):
    books: list[BookOut]
    metadata: Metadata
