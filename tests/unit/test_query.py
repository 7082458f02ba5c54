from __future__ import annotations

from typing import List

import pytest

from record_store.context import AppContext
from record_store.domain.models import Book
from record_store.errors import ValidationError
from record_store.query import QueryFilter, by_field_equals, by_range, first_by_field_equals
from record_store.services import BookService


def test_by_range_is_inclusive_and_ordered(sample_books: List[Book]):
    matches = by_range(sample_books, "price", 30, 50)
    assert [b.price for b in matches] == [39.99, 45.00]


def test_by_range_includes_bounds(sample_books: List[Book]):
    matches = by_range(sample_books, "price", 29.99, 45.00)
    assert len(matches) == 3


def test_by_range_rejects_inverted_bounds(sample_books: List[Book]):
    with pytest.raises(ValidationError, match="low"):
        by_range(sample_books, "price", 50, 30)


def test_by_range_rejects_inverted_bounds_on_empty_input():
    with pytest.raises(ValidationError):
        by_range([], "price", 50, 30)


def test_by_range_rejects_text_field(sample_books: List[Book]):
    with pytest.raises(ValidationError, match="not a numeric field"):
        by_range(sample_books, "author", 1, 2)


def test_by_range_rejects_non_numeric_bounds(sample_books: List[Book]):
    with pytest.raises(ValidationError, match="must be numbers"):
        by_range(sample_books, "price", "a", "z")


@pytest.mark.parametrize("low, high", [(float("nan"), 50), (30, float("nan")), (float("nan"), float("nan"))])
def test_by_range_rejects_nan_bounds(sample_books: List[Book], low: float, high: float):
    with pytest.raises(ValidationError, match="must be numbers"):
        by_range(sample_books, "price", low, high)


def test_by_range_accepts_infinite_bounds(sample_books: List[Book]):
    assert len(by_range(sample_books, "price", float("-inf"), float("inf"))) == len(sample_books)


def test_by_field_equals_single_match(sample_books: List[Book]):
    matches = by_field_equals(sample_books, "author", "Craig Walls")
    assert matches == [sample_books[1]]


def test_by_field_equals_no_match_is_empty(sample_books: List[Book]):
    assert by_field_equals(sample_books, "author", "Nobody") == []


def test_by_field_equals_unknown_field(sample_books: List[Book]):
    with pytest.raises(ValidationError, match="no field 'publisher'"):
        by_field_equals(sample_books, "publisher", "Manning")


def test_first_by_field_equals_tolerates_duplicates(sample_books: List[Book]):
    duplicate = Book.build(title="Spring in Action", author="Someone Else", price=10.0)
    books = sample_books + [duplicate]

    assert first_by_field_equals(books, "title", "Spring in Action") is sample_books[1]
    assert len(by_field_equals(books, "title", "Spring in Action")) == 2
    assert first_by_field_equals(books, "title", "Missing") is None


def test_filters_do_not_mutate_input(sample_books: List[Book]):
    before = list(sample_books)
    by_range(sample_books, "price", 0, 100)
    by_field_equals(sample_books, "author", "Craig Walls")
    assert sample_books == before


def test_query_filter_reads_committed_state(ctx: AppContext, sample_books: List[Book]):
    ctx.repository(Book).save_all(sample_books)
    query = QueryFilter(ctx.repository(Book))

    cheap = query.by_range("price", 0, 30)
    assert [b.title for b in cheap] == ["Java Basics"]
    assert cheap[0].id == 1
    assert query.first_by_field_equals("author", "Joshua Bloch").title == "Effective Java"


def test_query_filter_validates_field_on_empty_repository(ctx: AppContext):
    with pytest.raises(ValidationError):
        ctx.query(Book).by_field_equals("publisher", "Manning")


def test_book_service_lookups(ctx: AppContext, sample_books: List[Book]):
    ctx.repository(Book).save_all(sample_books)
    service = BookService(ctx)

    assert service.find_by_title("Spring in Action").author == "Craig Walls"
    assert service.find_by_title("Unknown") is None
    assert [b.title for b in service.find_by_author("Craig Walls")] == ["Spring in Action"]
    assert [b.price for b in service.find_by_price_range(30, 50)] == [39.99, 45.00]
