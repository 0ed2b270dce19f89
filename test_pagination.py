import pytest

from pagination import Metadata, calculate_metadata


@pytest.mark.parametrize("page, page_size", [(1, 1), (3, 20), (100, 100)])
def test_no_records_gives_zero_metadata(page, page_size):
    assert calculate_metadata(0, page, page_size) == Metadata()


@pytest.mark.parametrize(
    "total, page_size, last_page",
    [(1, 1, 1), (1, 20, 1), (20, 20, 1), (21, 20, 2), (99, 10, 10), (100, 10, 10), (101, 10, 11)],
)
def test_metadata_pages(total, page_size, last_page):
    metadata = calculate_metadata(total, 1, page_size)
    assert metadata.first_page == 1
    assert metadata.last_page == last_page
    assert metadata.current_page == 1
    assert metadata.page_size == page_size
    assert metadata.total_records == total


def test_metadata_ceiling_for_many_combinations():
    for total in range(1, 60):
        for page_size in range(1, 15):
            metadata = calculate_metadata(total, 2, page_size)
            assert metadata.last_page == -(-total // page_size)
            assert metadata.current_page == 2
