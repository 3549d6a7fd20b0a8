from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Iterable, Optional

import markdown

from .config import SiteConfig
from .content import (
    collapse_whitespace,
    count_words,
    extract_excerpt,
    get_categories,
    get_tags,
    normalize_list_spacing,
    parse_date,
    parse_front_matter,
    parse_updated,
    plain_text,
    reading_time,
    slugify,
    split_filename,
    unique,
)
from .errors import ConfigError, ContentError
from .models import Post, SiteIndex
from .render import fix_relative_img_src
from .utils import parse_bool

logger = logging.getLogger(__name__)

POST_SUFFIXES = {".md", ".markdown"}


def new_markdown(toc_depth: str) -> markdown.Markdown:
    return markdown.Markdown(
        extensions=["fenced_code", "tables", "toc", "codehilite"],
        extension_configs={
            "toc": {"toc_depth": toc_depth},
            "codehilite": {"guess_lang": False},
        },
    )


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def discover_posts(posts_dir: Path) -> list[Path]:
    paths = [path for path in posts_dir.rglob("*") if path.is_file() and path.suffix.lower() in POST_SUFFIXES]
    return sorted(paths, key=lambda p: p.as_posix())


def read_post(
    path: Path, posts_dir: Path, config: SiteConfig, now: dt.datetime, md: markdown.Markdown
) -> Optional[Post]:
    """Parse one content file; returns ``None`` for drafts and unpublished posts."""
    rel = path.relative_to(posts_dir).as_posix()
    try:
        meta, body = parse_front_matter(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ContentError(rel, str(exc)) from exc
    if parse_bool(meta.get("draft")):
        return None
    if "published" in meta and not parse_bool(meta["published"]):
        return None

    title = (meta.get("title") or "").strip()
    if not title:
        raise ContentError(rel, "missing required front matter field 'title'")
    try:
        date = parse_date(meta, path.stem)
        updated = parse_updated(meta)
    except ValueError as exc:
        raise ContentError(rel, str(exc)) from exc
    if date is None:
        raise ContentError(rel, "missing publish date: set 'date' or name the file YYYY-MM-DD-slug.md")

    _, file_slug = split_filename(path.stem)
    slug = slugify((meta.get("slug") or "").strip() or file_slug)

    html_content = md.convert(normalize_list_spacing(body))
    toc_html = md.toc
    md.reset()
    html_content = fix_relative_img_src(html_content, "..")
    text = collapse_whitespace(plain_text(html_content))
    excerpt = collapse_whitespace(meta.get("excerpt") or "") or extract_excerpt(html_content)
    words = count_words(text)

    return Post(
        source=rel,
        slug=slug,
        title=title,
        date=date,
        content=html_content,
        text=text,
        excerpt=excerpt,
        author=(meta.get("author") or "").strip() or None,
        categories=get_categories(meta),
        tags=get_tags(meta),
        updated=updated,
        description=collapse_whitespace(meta.get("description") or ""),
        keywords=unique(meta.get("keywords") or []),
        image=(meta.get("image") or "").strip(),
        toc=toc_html,
        words=words,
        reading_time=reading_time(words, config.words_per_minute),
        future=date > now,
    )


def order_posts(posts: Iterable[Post]) -> list[Post]:
    ordered = sorted(posts, key=lambda p: p.slug)
    ordered.sort(key=lambda p: p.date, reverse=True)
    return ordered


def index_posts(posts: Iterable[Post]) -> SiteIndex:
    ordered = order_posts(posts)
    categories: dict[str, list[Post]] = {}
    tags: dict[str, list[Post]] = {}
    for post in ordered:
        for category in post.categories:
            categories.setdefault(category, []).append(post)
        for tag in post.tags:
            tags.setdefault(tag, []).append(post)
    return SiteIndex(posts=ordered, categories=categories, tags=tags)


def build_index(posts_dir: Path, config: SiteConfig, now: Optional[dt.datetime] = None) -> SiteIndex:
    if not posts_dir.exists():
        raise ConfigError(f"Posts directory not found: {posts_dir}")
    now = now or utc_now()
    md = new_markdown(config.toc_depth)
    posts = []
    sources: dict[str, str] = {}
    for path in discover_posts(posts_dir):
        post = read_post(path, posts_dir, config, now, md)
        if post is None:
            logger.debug("Skipping unpublished post %s", path)
            continue
        if post.slug in sources:
            raise ContentError(post.source, f"slug {post.slug!r} is already used by {sources[post.slug]}")
        sources[post.slug] = post.source
        posts.append(post)
    index = index_posts(posts)
    future_count = sum(1 for post in index.posts if post.future)
    logger.info(
        "Indexed %d posts (%d future-dated), %d categories, %d tags",
        len(index.posts),
        future_count,
        len(index.categories),
        len(index.tags),
    )
    return index
