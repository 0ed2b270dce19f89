from pydantic import BaseModel, Field, field_validator

# The only values accepted for ``sort``. Column names are interpolated into
# ORDER BY, so nothing outside this tuple may ever reach the query.
SORT_SAFELIST = ("id", "title", "year", "pages", "-id", "-title", "-year", "-pages")

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100


class Filters(BaseModel):
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)
    sort: str = "id"

    @field_validator("sort")
    @classmethod
    def _check_sort(cls, value: str) -> str:
        if value not in SORT_SAFELIST:
            raise ValueError(f"invalid sort value, must be one of: {', '.join(SORT_SAFELIST)}")
        return value

    def sort_column(self) -> str:
        # Filters built with model_construct() skip validation, so check again.
        if self.sort not in SORT_SAFELIST:
            raise ValueError(f"unsafe sort parameter: {self.sort!r}")
        return self.sort.lstrip("-")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size
