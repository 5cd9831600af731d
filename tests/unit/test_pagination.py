"""Unit tests for offset pagination helpers."""

import pytest

from friendzi.pagination import page_offset, total_pages


class TestPageOffset:
    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [(1, 20, 0), (2, 20, 20), (3, 10, 20), (5, 1, 4)],
    )
    def test_offset(self, page, limit, expected):
        assert page_offset(page, limit) == expected

    def test_page_zero_rejected(self):
        with pytest.raises(ValueError, match="page"):
            page_offset(0, 20)

    def test_limit_zero_rejected(self):
        with pytest.raises(ValueError, match="limit"):
            page_offset(1, 0)


class TestTotalPages:
    @pytest.mark.parametrize(
        ("total", "limit", "expected"),
        [(0, 20, 0), (1, 20, 1), (20, 20, 1), (21, 20, 2), (100, 10, 10)],
    )
    def test_total_pages(self, total, limit, expected):
        assert total_pages(total, limit) == expected
