"""SEO metadata derived from post front matter and site configuration.

Every derivation here is deterministic: the same post and configuration always
produce byte-identical tags, so rebuilding an unchanged site yields unchanged
pages.
"""

from __future__ import annotations

import html
import json
from dataclasses import dataclass, field
from typing import Optional

from .config import SiteConfig
from .content import collapse_whitespace, unique
from .models import Author, Post
from .utils import iso_date

DESCRIPTION_LENGTH = 155


@dataclass(frozen=True)
class SeoMeta:
    title: str
    description: str
    keywords: tuple[str, ...] = ()
    url: str = ""
    image: str = ""
    kind: str = "website"
    published: str = ""
    modified: str = ""
    structured_data: dict = field(default_factory=dict)

    @property
    def keywords_text(self) -> str:
        return ", ".join(self.keywords)


def truncate(text: str, length: int = DESCRIPTION_LENGTH) -> str:
    return collapse_whitespace(text)[:length].rstrip()


def derive_description(post: Post) -> str:
    if post.description:
        return post.description
    if post.excerpt:
        return truncate(post.excerpt)
    return truncate(post.text)


def derive_keywords(post: Post, config: SiteConfig) -> tuple[str, ...]:
    if post.keywords:
        return post.keywords
    return unique([*post.tags, *post.categories, *config.seo_keywords])


def image_url(config: SiteConfig, image: str) -> str:
    if not image or image.startswith(("http://", "https://")):
        return image
    return config.absolute_url(image) or image


def author_block(author: Author) -> dict:
    block: dict = {"@type": "Person", "name": author.name}
    links = [url for label, url in author.links() if label != "Email"]
    if links:
        block["url"] = links[0]
    if len(links) > 1:
        block["sameAs"] = links[1:]
    return block


def structured_data(
    post: Post,
    config: SiteConfig,
    author: Optional[Author],
    description: str,
    keywords: tuple[str, ...],
) -> dict:
    data: dict = {
        "@context": "https://schema.org",
        "@type": "BlogPosting",
        "headline": post.title,
        "datePublished": iso_date(post.date),
        "dateModified": iso_date(post.updated or post.date),
        "description": description,
        "wordCount": len(post.text.split()),
    }
    if keywords:
        data["keywords"] = ", ".join(keywords)
    url = config.absolute_url(post.url)
    if url:
        data["url"] = url
        data["mainEntityOfPage"] = {"@type": "WebPage", "@id": url}
    if author is not None:
        data["author"] = author_block(author)
    if post.image:
        data["image"] = image_url(config, post.image)
    publisher: dict = {"@type": "Organization", "name": config.title}
    if config.logo:
        publisher["logo"] = {"@type": "ImageObject", "url": image_url(config, config.logo)}
    data["publisher"] = publisher
    return data


def build_seo(post: Post, config: SiteConfig, author: Optional[Author] = None) -> SeoMeta:
    description = derive_description(post)
    keywords = derive_keywords(post, config)
    return SeoMeta(
        title=post.title,
        description=description,
        keywords=keywords,
        url=config.absolute_url(post.url),
        image=image_url(config, post.image),
        kind="article",
        published=iso_date(post.date),
        modified=iso_date(post.updated or post.date),
        structured_data=structured_data(post, config, author, description, keywords),
    )


def site_seo(config: SiteConfig, title: str, path: str, description: str = "") -> SeoMeta:
    description = truncate(description or config.description)
    url = config.absolute_url(path)
    data: dict = {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "name": config.title,
        "description": description,
    }
    if url:
        data["url"] = url
    return SeoMeta(
        title=title,
        description=description,
        keywords=config.seo_keywords,
        url=url,
        image=image_url(config, config.logo),
        structured_data=data,
    )


def json_ld(data: dict) -> str:
    return json.dumps(data, sort_keys=True, ensure_ascii=False).replace("</", "<\\/")


def render_seo_tags(meta: SeoMeta, config: SiteConfig) -> str:
    def tag(attr: str, name: str, content: str) -> str:
        return f'<meta {attr}="{name}" content="{html.escape(content)}">'

    lines = [tag("name", "description", meta.description)]
    if meta.keywords:
        lines.append(tag("name", "keywords", meta.keywords_text))
    if meta.url:
        lines.append(f'<link rel="canonical" href="{html.escape(meta.url)}">')
    lines.append(tag("property", "og:title", meta.title))
    lines.append(tag("property", "og:description", meta.description))
    lines.append(tag("property", "og:type", meta.kind))
    lines.append(tag("property", "og:site_name", config.title))
    if meta.url:
        lines.append(tag("property", "og:url", meta.url))
    if meta.image:
        lines.append(tag("property", "og:image", meta.image))
    if meta.published:
        lines.append(tag("property", "article:published_time", meta.published))
    if meta.modified:
        lines.append(tag("property", "article:modified_time", meta.modified))
    lines.append(tag("name", "twitter:card", "summary_large_image" if meta.image else "summary"))
    if config.twitter_username:
        lines.append(tag("name", "twitter:site", f"@{config.twitter_username}"))
    lines.append(tag("name", "twitter:title", meta.title))
    lines.append(tag("name", "twitter:description", meta.description))
    if meta.image:
        lines.append(tag("name", "twitter:image", meta.image))
    if meta.structured_data:
        lines.append(f'<script type="application/ld+json">{json_ld(meta.structured_data)}</script>')
    return "\n".join(lines)
