from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .errors import ValidationError
from .index import build_index, index_posts, utc_now
from .models import SiteIndex
from .pages import (
    RenderContext,
    atom_feed,
    render_category_page,
    render_listing,
    render_not_found,
    render_post,
    rss_feed,
    sitemap,
)
from .paginate import build_category_archives, listing_pages
from .related import related_posts
from .render import (
    DEFAULT_STATIC_DIR,
    HIGHLIGHT_CSS,
    copy_static,
    highlight_stylesheet,
    load_base_template,
    write_text,
)
from .utils import clean_output_dir, write_nojekyll

logger = logging.getLogger(__name__)

ROOT_DOCUMENT = "index.html"


@dataclass
class BuildResult:
    output_dir: Path
    index: SiteIndex
    written: list[str] = field(default_factory=list)


def render_site(config: SiteConfig, index: SiteIndex, now: dt.datetime) -> dict[str, str]:
    """Render every output document in memory, keyed by path relative to the output root."""
    ctx = RenderContext(
        config=config,
        template=load_base_template(config.templates_dir),
        now=now,
        categories=index.categories,
    )
    outputs: dict[str, str] = {}
    for post in index.posts:
        related = related_posts(post, index.posts, config.related_limit, config.related_min_shared)
        outputs[post.url] = render_post(post, ctx, related)

    home_pages = listing_pages(index.posts, config.page_size)
    for page in home_pages:
        outputs[page.filename] = render_listing(page, ctx)

    archives = []
    if config.enable_archives:
        archives = build_category_archives(index.categories, config.page_size, config.archive_page_threshold)
        for archive in archives:
            for page in archive.pages:
                outputs[page.filename] = render_category_page(archive, page, ctx)

    if config.enable_404:
        outputs["404.html"] = render_not_found(ctx)

    published = [post for post in index.posts if not post.future]
    if config.site_url:
        if config.enable_rss:
            outputs["rss.xml"] = rss_feed(published, config, now)
        if config.enable_atom:
            outputs["atom.xml"] = atom_feed(published, config, now)
        if config.enable_sitemap:
            outputs["sitemap.xml"] = sitemap(published, home_pages, archives, config)
    elif config.enable_rss or config.enable_atom or config.enable_sitemap:
        logger.warning("No site url configured; feeds and sitemap were not generated")

    outputs[HIGHLIGHT_CSS.as_posix()] = highlight_stylesheet()
    if config.custom_domain:
        outputs["CNAME"] = f"{config.custom_domain}\n"
    return outputs


def build_site(
    config: SiteConfig,
    project_root: Optional[Path] = None,
    now: Optional[dt.datetime] = None,
    include_future: Optional[bool] = None,
) -> BuildResult:
    project_root = project_root or Path.cwd()
    now = now or utc_now()
    show_future = config.future if include_future is None else include_future

    index = build_index(config.posts_dir, config, now)
    visible = index if show_future else index_posts(index.published())
    hidden = len(index.posts) - len(visible.posts)
    if hidden:
        logger.info("Hiding %d future-dated posts", hidden)

    outputs = render_site(config, visible, now)

    output_dir = config.output_dir
    if config.clean:
        clean_output_dir(output_dir, project_root)
    output_dir.mkdir(parents=True, exist_ok=True)
    copy_static(DEFAULT_STATIC_DIR, output_dir)
    if config.static_dir.exists():
        copy_static(config.static_dir, output_dir)
    for rel, text in sorted(outputs.items()):
        write_text(output_dir / rel, text)
    if config.write_nojekyll:
        write_nojekyll(output_dir)
    logger.info("Wrote %d documents to %s", len(outputs), output_dir)
    return BuildResult(output_dir=output_dir, index=visible, written=sorted(outputs))


def validate_output(output_dir: Path) -> None:
    if not output_dir.is_dir():
        raise ValidationError(f"Build failed: {output_dir} directory not found")
    if not (output_dir / ROOT_DOCUMENT).is_file():
        raise ValidationError(f"Build failed: {ROOT_DOCUMENT} not found in {output_dir}")
