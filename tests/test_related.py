"""Tests for related post ranking."""

from __future__ import annotations

import datetime as dt
from typing import Callable

from blogsmith.related import related_posts


def slugs(result: list) -> list[str]:
    return [post.slug for post, _ in result]


class TestRelatedPosts:
    def test_shared_tags_beat_unrelated_posts(self, post_factory: Callable) -> None:
        a = post_factory("a", tags=("x", "y"))
        b = post_factory("b", tags=("y", "z"))
        c = post_factory("c", tags=("w",))
        result = related_posts(a, [a, b, c])
        assert result == [(b, 1)]

    def test_ranked_by_shared_count_then_newest(self, post_factory: Callable) -> None:
        post = post_factory("post", tags=("x", "y", "z"))
        one_old = post_factory("one-old", date=dt.datetime(2023, 1, 1), tags=("x",))
        one_new = post_factory("one-new", date=dt.datetime(2024, 1, 1), tags=("y",))
        two = post_factory("two", date=dt.datetime(2022, 1, 1), tags=("x", "z"))
        result = related_posts(post, [one_old, post, one_new, two])
        assert slugs(result) == ["two", "one-new", "one-old"]
        assert [count for _, count in result] == [2, 1, 1]

    def test_limit_truncates(self, post_factory: Callable) -> None:
        post = post_factory("post", tags=("x",))
        others = [post_factory(f"p{i}", date=dt.datetime(2024, 1, i + 1), tags=("x",)) for i in range(6)]
        result = related_posts(post, [post, *others], limit=4)
        assert slugs(result) == ["p5", "p4", "p3", "p2"]

    def test_minimum_shared_tags(self, post_factory: Callable) -> None:
        post = post_factory("post", tags=("x", "y"))
        one = post_factory("one", tags=("x",))
        two = post_factory("two", tags=("x", "y"))
        assert slugs(related_posts(post, [post, one, two], min_shared=2)) == ["two"]

    def test_falls_back_to_primary_category(self, post_factory: Callable) -> None:
        post = post_factory("post", categories=("Rails", "DB"), tags=("only-here",))
        older = post_factory("older", date=dt.datetime(2023, 1, 1), categories=("Rails",))
        newer = post_factory("newer", date=dt.datetime(2024, 1, 1), categories=("Ops", "Rails"))
        secondary = post_factory("secondary", categories=("DB",))
        result = related_posts(post, [post, older, newer, secondary])
        assert result == [(newer, 0), (older, 0)]

    def test_nothing_related(self, post_factory: Callable) -> None:
        post = post_factory("post", categories=("Rails",), tags=("x",))
        other = post_factory("other", categories=("Ops",), tags=("y",))
        assert related_posts(post, [post, other]) == []

    def test_uncategorized_post_without_matches(self, post_factory: Callable) -> None:
        post = post_factory("post")
        other = post_factory("other", categories=("Rails",))
        assert related_posts(post, [post, other]) == []

    def test_never_includes_the_post_itself(self, post_factory: Callable) -> None:
        post = post_factory("post", categories=("Rails",), tags=("x",))
        assert related_posts(post, [post]) == []

    def test_zero_limit(self, post_factory: Callable) -> None:
        post = post_factory("post", tags=("x",))
        other = post_factory("other", tags=("x",))
        assert related_posts(post, [post, other], limit=0) == []
