from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Author:
    key: str
    name: str
    avatar: str = ""
    email: str = ""
    web: str = ""
    twitter: str = ""
    linkedin: str = ""
    github: str = ""
    bio: str = ""

    def links(self) -> list[tuple[str, str]]:
        """Return ``(label, url)`` pairs for every contact link that is set."""
        pairs = []
        if self.web:
            web = self.web if self.web.startswith(("http://", "https://")) else f"https://{self.web}"
            pairs.append(("Website", web))
        if self.twitter:
            pairs.append(("Twitter", self.twitter))
        if self.linkedin:
            pairs.append(("LinkedIn", self.linkedin))
        if self.github:
            pairs.append(("GitHub", self.github))
        if self.email:
            pairs.append(("Email", f"mailto:{self.email}"))
        return pairs


@dataclass(frozen=True)
class Post:
    source: str
    slug: str
    title: str
    date: dt.datetime
    content: str
    text: str
    excerpt: str = ""
    author: Optional[str] = None
    categories: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    updated: Optional[dt.datetime] = None
    description: str = ""
    keywords: tuple[str, ...] = ()
    image: str = ""
    toc: str = ""
    words: int = 0
    reading_time: int = 0
    future: bool = False

    @property
    def url(self) -> str:
        return f"posts/{self.slug}.html"

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None


@dataclass(frozen=True)
class Page:
    number: int
    posts: tuple[Post, ...]
    total_pages: int
    previous: Optional[int] = None
    next: Optional[int] = None
    prefix: str = ""

    @property
    def filename(self) -> str:
        return page_filename(self.prefix, self.number)


@dataclass(frozen=True)
class CategoryArchive:
    name: str
    slug: str
    posts: tuple[Post, ...]
    pages: tuple[Page, ...]


@dataclass
class SiteIndex:
    posts: list[Post] = field(default_factory=list)
    categories: dict[str, list[Post]] = field(default_factory=dict)
    tags: dict[str, list[Post]] = field(default_factory=dict)

    def published(self) -> list[Post]:
        return [post for post in self.posts if not post.future]


def page_filename(prefix: str, number: int) -> str:
    if not prefix:
        return "index.html" if number == 1 else f"page-{number}.html"
    if number == 1:
        return f"{prefix}.html"
    return f"{prefix}-page-{number}.html"
