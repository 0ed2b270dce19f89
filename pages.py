import re

PAGES_SUFFIX = "pages"
MAX_PAGES = 2**31 - 1

_PAGES_RE = re.compile(r"([0-9]+) pages")


class InvalidPagesFormat(ValueError):
    def __init__(self, value=None):
        super().__init__("invalid pages format")
        self.value = value


def format_pages(pages: int) -> str:
    return f"{pages} {PAGES_SUFFIX}"


def parse_pages(value) -> int:
    """Parse the ``"<n> pages"`` text form back into an integer.

    Only that exact form is accepted: one space, no sign, lowercase unit.
    """
    if not isinstance(value, str):
        raise InvalidPagesFormat(value)
    match = _PAGES_RE.fullmatch(value)
    if match is None:
        raise InvalidPagesFormat(value)
    pages = int(match.group(1))
    if pages > MAX_PAGES:
        raise InvalidPagesFormat(value)
    return pages
