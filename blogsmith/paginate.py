from __future__ import annotations

import math
from typing import Mapping, Sequence

from .content import slugify
from .errors import ConfigError
from .models import CategoryArchive, Page, Post

CATEGORY_PREFIX = "category"


def paginate(posts: Sequence[Post], page_size: int, prefix: str = "") -> list[Page]:
    if page_size < 1:
        raise ConfigError(f"Page size must be at least 1, got {page_size}")
    total_pages = math.ceil(len(posts) / page_size)
    pages = []
    for number in range(1, total_pages + 1):
        start = (number - 1) * page_size
        pages.append(
            Page(
                number=number,
                posts=tuple(posts[start : start + page_size]),
                total_pages=total_pages,
                previous=number - 1 if number > 1 else None,
                next=number + 1 if number < total_pages else None,
                prefix=prefix,
            )
        )
    return pages


def listing_pages(posts: Sequence[Post], page_size: int, prefix: str = "") -> list[Page]:
    pages = paginate(posts, page_size, prefix)
    if not pages:
        return [Page(number=1, posts=(), total_pages=1, prefix=prefix)]
    return pages


def category_prefix(name: str) -> str:
    return f"{CATEGORY_PREFIX}/{slugify(name)}"


def build_category_archives(
    categories: Mapping[str, Sequence[Post]], page_size: int, threshold: int = 0
) -> list[CategoryArchive]:
    archives = []
    owners: dict[str, str] = {}
    for name, posts in sorted(categories.items(), key=lambda item: (item[0].lower(), item[0])):
        prefix = category_prefix(name)
        if prefix in owners:
            raise ConfigError(f"Categories {owners[prefix]!r} and {name!r} share the archive page {prefix}.html")
        owners[prefix] = name
        if threshold > 0 and len(posts) > threshold:
            pages = paginate(posts, page_size, prefix)
        else:
            pages = [Page(number=1, posts=tuple(posts), total_pages=1, prefix=prefix)]
        archives.append(
            CategoryArchive(name=name, slug=slugify(name), posts=tuple(posts), pages=tuple(pages))
        )
    return archives
