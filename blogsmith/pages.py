from __future__ import annotations

import datetime as dt
import html
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from .config import SiteConfig
from .errors import ConfigError
from .models import Author, CategoryArchive, Page, Post, page_filename
from .paginate import category_prefix
from .render import render_template
from .seo import build_seo, render_seo_tags, site_seo
from .utils import iso_date, join_url, rfc822_date, unix_timestamp

DATE_FMT = "%b %d, %Y"


@dataclass(frozen=True)
class RenderContext:
    config: SiteConfig
    template: str
    now: dt.datetime
    categories: Mapping[str, Sequence[Post]] = field(default_factory=dict)

    @property
    def authors(self) -> Mapping[str, Author]:
        return self.config.authors


def resolve_author(post: Post, config: SiteConfig) -> Optional[Author]:
    key = post.author or config.default_author
    if not key:
        return None
    author = config.authors.get(key)
    if author is None:
        raise ConfigError(f"{post.source}: unknown author {key!r}")
    return author


def sorted_labels(labels: Iterable[str]) -> list[str]:
    return sorted(set(labels), key=lambda label: (label.lower(), label))


def format_date(value: dt.datetime) -> str:
    return value.strftime(DATE_FMT)


def category_url(name: str, root: str) -> str:
    return f"{root}/{category_prefix(name)}.html"


def category_chips(post: Post, root: str, linked: bool) -> str:
    chips = []
    for name in sorted_labels(post.categories):
        label = html.escape(name)
        if linked:
            chips.append(f'<a class="chip" href="{category_url(name, root)}">{label}</a>')
        else:
            chips.append(f'<span class="chip">{label}</span>')
    return " ".join(chips)


def tag_list(post: Post) -> str:
    if not post.tags:
        return ""
    items = "".join(f'<li class="tag">#{html.escape(tag)}</li>' for tag in sorted_labels(post.tags))
    return f'<ul class="post-tags-list">{items}</ul>'


def build_category_list(category_map: Mapping[str, Sequence[Post]], root: str, linked: bool) -> str:
    items = []
    for name, posts in sorted(category_map.items(), key=lambda x: (-len(x[1]), x[0].lower())):
        label = html.escape(name)
        if linked:
            label = f'<a href="{category_url(name, root)}">{label}</a>'
        items.append(f'<li>{label}<span class="count">{len(posts)}</span></li>')
    return "\n".join(items) if items else "<li>No categories yet.</li>"


def build_sidebar(ctx: RenderContext, root: str, toc_html: str = "") -> str:
    config = ctx.config
    panels = []
    if config.description:
        panels.append(f'<div class="panel"><h3>About</h3><p>{html.escape(config.description)}</p></div>')
    if toc_html and "<li" in toc_html:
        panels.append(f'<div class="panel"><h3>Contents</h3>{toc_html}</div>')
    categories_html = build_category_list(ctx.categories, root, config.enable_archives)
    panels.append(
        '<div class="panel">'
        "<h3>Categories</h3>"
        f'<ul class="category-list">{categories_html}</ul>'
        "</div>"
    )
    return "".join(panels)


def build_post_cards(posts: Sequence[Post], root: str, linked_categories: bool = True) -> str:
    cards = []
    for idx, post in enumerate(posts):
        delay = min(idx * 0.05, 0.3)
        url = f"{root}/{post.url}"
        future_attrs = ""
        if post.future:
            future_attrs = f' data-post-future="true" data-post-date="{unix_timestamp(post.date)}"'
        excerpt = f'<p class="post-summary">{html.escape(post.excerpt)}</p>' if post.excerpt else ""
        cards.append(
            f'<article class="post-card card-group" style="animation-delay: {delay:.2f}s"{future_attrs}>'
            '<div class="post-meta"><div class="post-meta-left">'
            f'<time class="post-date" datetime="{iso_date(post.date)}">{format_date(post.date)}</time>'
            f'<span class="post-reading">{post.reading_time} min read</span>'
            "</div>"
            f'<div class="post-tags">{category_chips(post, root, linked_categories)}</div></div>'
            f'<h2 class="post-title"><a href="{url}">{html.escape(post.title)}</a></h2>'
            f"{excerpt}"
            f'<a class="post-more" href="{url}">Read more</a>'
            "</article>"
        )
    return "\n".join(cards)


def build_pagination(page: Page, root: str) -> str:
    if page.total_pages <= 1:
        return ""

    def link(number: int) -> str:
        return f"{root}/{page_filename(page.prefix, number)}"

    items = []
    if page.previous is not None:
        items.append(f'<a class="page-link" rel="prev" href="{link(page.previous)}">Previous</a>')
    numbers = []
    for num in range(1, page.total_pages + 1):
        if num == page.number:
            numbers.append(f'<span class="page-number is-active">{num}</span>')
        else:
            numbers.append(f'<a class="page-number" href="{link(num)}">{num}</a>')
    items.append(f'<div class="page-numbers">{"".join(numbers)}</div>')
    if page.next is not None:
        items.append(f'<a class="page-link" rel="next" href="{link(page.next)}">Next</a>')
    return f'<nav class="pagination">{"".join(items)}</nav>'


def newsletter_popup(config: SiteConfig) -> str:
    if not (config.enable_newsletter and config.newsletter_url):
        return ""
    action = html.escape(config.newsletter_url)
    return (
        '<div class="alertbar newsletter-popup" hidden data-newsletter>'
        '<button class="newsletter-close" type="button" aria-label="Close" data-newsletter-close>&times;</button>'
        f"<p>Enjoying {html.escape(config.title)}? Get new posts by email.</p>"
        f'<form action="{action}" method="post" target="_blank" novalidate>'
        '<input type="email" name="EMAIL" class="newsletter-email" placeholder="Email address" required>'
        '<button type="submit" class="newsletter-submit">Subscribe</button>'
        "</form>"
        "</div>"
    )


def analytics_snippet(config: SiteConfig) -> str:
    if not config.analytics_id:
        return ""
    tracking_id = html.escape(config.analytics_id)
    return (
        f'<script async src="https://www.googletagmanager.com/gtag/js?id={tracking_id}"></script>'
        "<script>window.dataLayer=window.dataLayer||[];"
        "function gtag(){dataLayer.push(arguments);}"
        f"gtag('js',new Date());gtag('config','{tracking_id}');</script>"
    )


def render_document(
    ctx: RenderContext, title: str, root: str, content: str, sidebar: str, seo_html: str, extra_head: str = ""
) -> str:
    config = ctx.config
    return render_template(
        ctx.template,
        title=html.escape(title),
        root=root,
        seo=seo_html,
        extra_head=extra_head,
        site_name=html.escape(config.title),
        site_description=html.escape(config.description),
        analytics=analytics_snippet(config),
        newsletter=newsletter_popup(config),
        year=str(ctx.now.year),
        content=content,
        sidebar=sidebar,
    )


def build_author_box(author: Author, root: str) -> str:
    avatar = ""
    if author.avatar:
        src = author.avatar if author.avatar.startswith(("http://", "https://", "/")) else f"{root}/{author.avatar}"
        avatar = f'<img class="author-avatar" src="{html.escape(src)}" alt="{html.escape(author.name)}">'
    bio = f'<p class="author-bio">{html.escape(author.bio)}</p>' if author.bio else ""
    links = "".join(
        f'<li><a href="{html.escape(url)}" rel="me">{label}</a></li>' for label, url in author.links()
    )
    links_html = f'<ul class="author-links">{links}</ul>' if links else ""
    return (
        '<aside class="author-box">'
        f"{avatar}"
        f'<div class="author-info"><span class="author-name">{html.escape(author.name)}</span>'
        f"{bio}{links_html}</div>"
        "</aside>"
    )


def build_related(related: Sequence[tuple[Post, int]], root: str) -> str:
    if not related:
        return ""
    rows = []
    for item, _ in related:
        rows.append(
            f'<li><a href="{root}/{item.url}">{html.escape(item.title)}</a>'
            f'<time class="related-date" datetime="{iso_date(item.date)}">{format_date(item.date)}</time></li>'
        )
    return (
        '<section class="related-posts">'
        "<h3>Related posts</h3>"
        f'<ul class="related-list">{"".join(rows)}</ul>'
        "</section>"
    )


def render_post(post: Post, ctx: RenderContext, related: Sequence[tuple[Post, int]] = ()) -> str:
    config = ctx.config
    root = ".."
    author = resolve_author(post, config)
    seo_html = render_seo_tags(build_seo(post, config, author), config)

    meta_parts = [f'<time class="post-date" datetime="{iso_date(post.date)}">{format_date(post.date)}</time>']
    if post.updated:
        meta_parts.append(
            f'<span class="post-updated">Updated <time datetime="{iso_date(post.updated)}">'
            f"{format_date(post.updated)}</time></span>"
        )
    meta_parts.append(f'<span class="post-reading">{post.reading_time} min read</span>')
    if author is not None:
        meta_parts.append(f'<span class="post-author">By {html.escape(author.name)}</span>')

    image_html = ""
    if post.image:
        src = post.image if post.image.startswith(("http://", "https://", "/")) else f"{root}/{post.image}"
        image_html = (
            f'<figure class="post-image"><img src="{html.escape(src)}" alt="{html.escape(post.title)}"></figure>'
        )

    content = (
        '<article class="post article-post">'
        '<div class="post-meta"><div class="post-meta-left">'
        f'{"".join(meta_parts)}'
        "</div>"
        f'<div class="post-tags">{category_chips(post, root, config.enable_archives)}</div></div>'
        f'<h1 class="post-title">{html.escape(post.title)}</h1>'
        f"{image_html}"
        f'<div class="post-body">{post.content}</div>'
        f"{tag_list(post)}"
        f"{build_author_box(author, root) if author is not None else ''}"
        f"{build_related(related, root)}"
        f'<div class="post-footer"><a href="{root}/index.html">Back to home</a></div>'
        "</article>"
    )
    return render_document(
        ctx,
        f"{post.title} | {config.title}",
        root,
        content,
        build_sidebar(ctx, root, post.toc),
        seo_html,
        extra_head=f'<link rel="stylesheet" href="{root}/css/highlight.css">',
    )


def render_listing(page: Page, ctx: RenderContext) -> str:
    config = ctx.config
    root = "."
    title = config.title if page.number == 1 else f"{config.title} | Page {page.number}"
    if page.posts:
        grid = f'<div class="post-grid">{build_post_cards(page.posts, root, config.enable_archives)}</div>'
    else:
        grid = '<p class="post-empty">No posts yet.</p>'
    content = (
        '<div class="section-head">'
        "<h2>Latest posts</h2>"
        "</div>"
        f"{grid}"
        f"{build_pagination(page, root)}"
    )
    seo_html = render_seo_tags(site_seo(config, title, page.filename if page.number > 1 else ""), config)
    return render_document(ctx, title, root, content, build_sidebar(ctx, root), seo_html)


def render_category_page(archive: CategoryArchive, page: Page, ctx: RenderContext) -> str:
    config = ctx.config
    root = ".."
    heading = html.escape(archive.name)
    title = f"{archive.name} | {config.title}"
    if page.number > 1:
        title = f"{archive.name} | Page {page.number} | {config.title}"
    content = (
        '<div class="section-head">'
        f"<h2>{heading}</h2>"
        f"<p>{len(archive.posts)} posts in this category.</p>"
        "</div>"
        f'<div class="post-grid">{build_post_cards(page.posts, root)}</div>'
        f"{build_pagination(page, root)}"
    )
    description = f"Posts filed under {archive.name}."
    seo_html = render_seo_tags(site_seo(config, title, page.filename, description), config)
    return render_document(ctx, title, root, content, build_sidebar(ctx, root), seo_html)


def render_not_found(ctx: RenderContext) -> str:
    config = ctx.config
    root = "."
    content = (
        '<div class="section-head">'
        "<h2>404</h2>"
        "<p>Page not found. Try heading back to the homepage.</p>"
        "</div>"
        '<div class="post-card">'
        '<p class="post-summary">The page you requested does not exist.</p>'
        f'<a class="post-more" href="{root}/index.html">Back to home</a>'
        "</div>"
    )
    title = f"404 | {config.title}"
    seo_html = render_seo_tags(site_seo(config, title, "404.html"), config)
    return render_document(ctx, title, root, content, build_sidebar(ctx, root), seo_html)


def rss_feed(posts: Sequence[Post], config: SiteConfig, now: dt.datetime) -> str:
    site_url = config.site_url
    items = []
    for post in posts[: config.feed_limit]:
        link = join_url(site_url, post.url)
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(post.title)}</title>",
                    f"<link>{link}</link>",
                    f"<guid>{link}</guid>",
                    f"<pubDate>{rfc822_date(post.date)}</pubDate>",
                    *[f"<category>{html.escape(name)}</category>" for name in post.categories],
                    f"<description>{html.escape(post.excerpt)}</description>",
                    "</item>",
                ]
            )
        )
    last_build = rfc822_date(posts[0].date) if posts else rfc822_date(now)
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0">',
            "<channel>",
            f"<title>{html.escape(config.title)}</title>",
            f"<link>{site_url}/</link>",
            f"<description>{html.escape(config.description)}</description>",
            f"<lastBuildDate>{last_build}</lastBuildDate>",
            "\n".join(items),
            "</channel>",
            "</rss>",
        ]
    )


def atom_feed(posts: Sequence[Post], config: SiteConfig, now: dt.datetime) -> str:
    site_url = config.site_url
    updated = iso_date(posts[0].updated or posts[0].date) if posts else iso_date(now)
    entries = []
    for post in posts[: config.feed_limit]:
        link = join_url(site_url, post.url)
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(post.title)}</title>",
                    f'<link href="{link}" />',
                    f"<id>{link}</id>",
                    f"<published>{iso_date(post.date)}</published>",
                    f"<updated>{iso_date(post.updated or post.date)}</updated>",
                    f"<summary>{html.escape(post.excerpt)}</summary>",
                    "</entry>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"<title>{html.escape(config.title)}</title>",
            f"<id>{site_url}/</id>",
            f"<updated>{updated}</updated>",
            f'<link href="{site_url}/atom.xml" rel="self" />',
            f'<link href="{site_url}/" />',
            "\n".join(entries),
            "</feed>",
        ]
    )


def sitemap(
    posts: Sequence[Post],
    home_pages: Sequence[Page],
    archives: Sequence[CategoryArchive],
    config: SiteConfig,
) -> str:
    site_url = config.site_url
    urls: list[tuple[str, Optional[dt.datetime]]] = [(site_url + "/", None)]
    for page in home_pages[1:]:
        urls.append((join_url(site_url, page.filename), None))
    for post in posts:
        urls.append((join_url(site_url, post.url), post.updated or post.date))
    for archive in archives:
        for page in archive.pages:
            urls.append((join_url(site_url, page.filename), None))
    items = []
    for url, lastmod in urls:
        lines = ["<url>", f"<loc>{html.escape(url)}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{lastmod.date().isoformat()}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(items),
            "</urlset>",
        ]
    )
