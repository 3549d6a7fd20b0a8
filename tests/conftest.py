"""Shared fixtures for blogsmith tests."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Callable

import pytest

from blogsmith.config import SiteConfig
from blogsmith.models import Author, Post

NOW = dt.datetime(2025, 6, 1, 12, 0, 0)


def make_post(
    slug: str = "post",
    title: str = "",
    date: dt.datetime = dt.datetime(2025, 1, 1, 9, 0, 0),
    categories: tuple[str, ...] = (),
    tags: tuple[str, ...] = (),
    text: str = "Some body text for the post.",
    **kwargs,
) -> Post:
    kwargs.setdefault("content", f"<p>{text}</p>")
    kwargs.setdefault("excerpt", text)
    kwargs.setdefault("words", len(text.split()))
    return Post(
        source=f"{date:%Y-%m-%d}-{slug}.md",
        slug=slug,
        title=title or slug.replace("-", " ").title(),
        date=date,
        text=text,
        categories=tuple(categories),
        tags=tuple(tags),
        **kwargs,
    )


@pytest.fixture
def post_factory() -> Callable[..., Post]:
    return make_post


@pytest.fixture
def now() -> dt.datetime:
    return NOW


@pytest.fixture
def jane() -> Author:
    return Author(
        key="jane",
        name="Jane Doe",
        avatar="images/jane.png",
        web="jane.dev",
        github="https://github.com/jane",
        bio="Writes about databases.",
    )


@pytest.fixture
def site_config(jane: Author) -> SiteConfig:
    return SiteConfig(
        title="Test Blog",
        description="A blog used in tests.",
        url="https://blog.test",
        authors={"jane": jane},
        seo_keywords=("Ruby", "PostgreSQL"),
    )


@pytest.fixture
def write_post(tmp_path: Path) -> Callable[..., Path]:
    posts_dir = tmp_path / "_posts"
    posts_dir.mkdir(exist_ok=True)

    def _write(name: str, front_matter: str, body: str = "Hello world.") -> Path:
        path = posts_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"---\n{front_matter.strip()}\n---\n{body}\n", encoding="utf-8")
        return path

    return _write
