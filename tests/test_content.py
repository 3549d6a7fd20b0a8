"""Tests for front matter parsing and content helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from blogsmith.content import (
    count_words,
    extract_excerpt,
    get_categories,
    parse_date,
    parse_front_matter,
    parse_timestamp,
    parse_updated,
    reading_time,
    slugify,
    split_filename,
)


class TestParseFrontMatter:
    def test_inline_lists_and_scalars(self) -> None:
        meta, body = parse_front_matter(
            '---\ntitle: "Scaling: Part 1"\ncategories: [Rails, Postgres]\ntags: db, indexes\n---\nBody'
        )
        assert meta["title"] == "Scaling: Part 1"
        assert meta["categories"] == ["Rails", "Postgres"]
        assert meta["tags"] == ["db", "indexes"]
        assert body == "Body"

    def test_block_lists(self) -> None:
        meta, _ = parse_front_matter("---\ntitle: T\ntags:\n  - one\n  - 'two'\nauthor: jane\n---\n")
        assert meta["tags"] == ["one", "two"]
        assert meta["author"] == "jane"

    def test_document_without_front_matter(self) -> None:
        meta, body = parse_front_matter("Just text")
        assert meta == {}
        assert body == "Just text"

    def test_unclosed_block_raises(self) -> None:
        with pytest.raises(ValueError, match="not closed"):
            parse_front_matter("---\ntitle: T\nBody without delimiter")

    def test_list_item_without_list_key_raises(self) -> None:
        with pytest.raises(ValueError, match="list item"):
            parse_front_matter("---\ntitle: T\n- stray\n---\n")

    def test_line_without_colon_raises(self) -> None:
        with pytest.raises(ValueError, match="key: value"):
            parse_front_matter("---\ntitle: T\nnot a pair\n---\n")

    def test_byte_order_mark_is_ignored(self) -> None:
        meta, _ = parse_front_matter("\ufeff---\ntitle: T\n---\n")
        assert meta["title"] == "T"


class TestDates:
    def test_jekyll_timestamp_with_offset_is_normalized_to_utc(self) -> None:
        assert parse_timestamp("2024-03-10 10:00:00 +0530") == dt.datetime(2024, 3, 10, 4, 30)

    def test_plain_date_is_midnight(self) -> None:
        assert parse_timestamp("2024-03-10") == dt.datetime(2024, 3, 10)

    def test_unrecognized_date_raises(self) -> None:
        with pytest.raises(ValueError, match="unrecognized date"):
            parse_timestamp("March 10th")

    def test_front_matter_date_wins_over_filename(self) -> None:
        assert parse_date({"date": "2024-05-01"}, "2023-01-01-post") == dt.datetime(2024, 5, 1)

    def test_filename_date_is_fallback(self) -> None:
        assert parse_date({}, "2023-01-02-post") == dt.datetime(2023, 1, 2)

    def test_no_date_anywhere(self) -> None:
        assert parse_date({}, "post") is None

    def test_updated_reads_last_modified_at(self) -> None:
        assert parse_updated({"last_modified_at": "2024-06-01"}) == dt.datetime(2024, 6, 1)
        assert parse_updated({}) is None


class TestHelpers:
    def test_split_filename(self) -> None:
        assert split_filename("2024-01-05-hello-world") == ("2024-01-05", "hello-world")
        assert split_filename("hello") == (None, "hello")

    def test_slugify(self) -> None:
        assert slugify("Hello, World!") == "hello-world"
        assert slugify("***") == "post"

    def test_categories_are_deduplicated(self) -> None:
        assert get_categories({"categories": ["Rails", "Rails", "DB"]}) == ("Rails", "DB")
        assert get_categories({"category": "Solo"}) == ("Solo",)
        assert get_categories({}) == ()

    def test_count_words_uses_whitespace(self) -> None:
        assert count_words("one  two\nthree\tfour") == 4
        assert count_words("") == 0

    def test_reading_time_rounds_up(self) -> None:
        assert reading_time(0, 200) == 0
        assert reading_time(200, 200) == 1
        assert reading_time(201, 200) == 2

    def test_extract_excerpt_takes_first_paragraph(self) -> None:
        html_text = "<h2>Intro</h2><p>First <em>para</em>\n here &amp; now</p><p>Second</p>"
        assert extract_excerpt(html_text) == "First para here & now"
        assert extract_excerpt("<h1>No paragraphs</h1>") == ""
