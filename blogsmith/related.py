from __future__ import annotations

from typing import Sequence

from .models import Post

DEFAULT_LIMIT = 4


def shared_tag_count(post: Post, other: Post) -> int:
    return len(set(post.tags) & set(other.tags))


def related_posts(
    post: Post, posts: Sequence[Post], limit: int = DEFAULT_LIMIT, min_shared: int = 1
) -> list[tuple[Post, int]]:
    """Rank other posts by the number of tags they share with ``post``.

    Posts sharing at least ``min_shared`` tags come first, most shared tags
    first and newest first among equals. When none qualify, the newest posts
    in the same primary category are returned instead. An empty list means
    there is nothing related to show.
    """
    if limit <= 0:
        return []
    others = [other for other in posts if other.slug != post.slug]

    scored = [(other, shared_tag_count(post, other)) for other in others]
    matches = [(other, count) for other, count in scored if count >= min_shared]
    if matches:
        matches.sort(key=lambda item: item[0].date, reverse=True)
        matches.sort(key=lambda item: item[1], reverse=True)
        return matches[:limit]

    category = post.primary_category
    if category is None:
        return []
    same_category = [(other, count) for other, count in scored if category in other.categories]
    same_category.sort(key=lambda item: item[0].date, reverse=True)
    return same_category[:limit]
