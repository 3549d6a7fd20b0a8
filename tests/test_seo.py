"""Tests for SEO metadata derivation and rendering."""

from __future__ import annotations

import datetime as dt
import json
import re
from typing import Callable

from blogsmith.config import SiteConfig
from blogsmith.models import Author
from blogsmith.seo import (
    build_seo,
    derive_description,
    derive_keywords,
    json_ld,
    render_seo_tags,
    site_seo,
)


def ld_payload(rendered: str) -> dict:
    match = re.search(r'<script type="application/ld\+json">(.*?)</script>', rendered, re.DOTALL)
    assert match is not None
    return json.loads(match.group(1).replace("<\\/", "</"))


class TestDerivations:
    def test_explicit_description_wins(self, post_factory: Callable) -> None:
        post = post_factory("p", description="Hand written.", excerpt="Excerpt text.")
        assert derive_description(post) == "Hand written."

    def test_excerpt_is_collapsed_and_truncated(self, post_factory: Callable) -> None:
        post = post_factory("p", excerpt="word   \n" * 100)
        description = derive_description(post)
        assert len(description) <= 155
        assert "  " not in description
        assert description.startswith("word word")

    def test_falls_back_to_body_text(self, post_factory: Callable) -> None:
        post = post_factory("p", text="Body only.", excerpt="")
        assert derive_description(post) == "Body only."

    def test_keywords_are_a_deduplicated_union(self, post_factory: Callable, site_config: SiteConfig) -> None:
        post = post_factory("p", tags=("rails", "db"), categories=("Backend", "db"))
        assert derive_keywords(post, site_config) == ("rails", "db", "Backend", "Ruby", "PostgreSQL")

    def test_explicit_keywords_win(self, post_factory: Callable, site_config: SiteConfig) -> None:
        post = post_factory("p", tags=("rails",), keywords=("custom",))
        assert derive_keywords(post, site_config) == ("custom",)


class TestBuildSeo:
    def test_is_deterministic(self, post_factory: Callable, site_config: SiteConfig, jane: Author) -> None:
        post = post_factory("p", tags=("rails",), categories=("Backend",), image="images/cover.png")
        first = render_seo_tags(build_seo(post, site_config, jane), site_config)
        second = render_seo_tags(build_seo(post, site_config, jane), site_config)
        assert first == second

    def test_article_fields(self, post_factory: Callable, site_config: SiteConfig, jane: Author) -> None:
        post = post_factory(
            "scaling",
            title="Scaling",
            date=dt.datetime(2024, 2, 10, 8, 0),
            updated=dt.datetime(2024, 2, 12),
            image="images/cover.png",
            text="one two three",
        )
        meta = build_seo(post, site_config, jane)
        assert meta.kind == "article"
        assert meta.url == "https://blog.test/posts/scaling.html"
        assert meta.image == "https://blog.test/images/cover.png"
        assert meta.published == "2024-02-10T08:00:00Z"
        assert meta.modified == "2024-02-12T00:00:00Z"
        data = meta.structured_data
        assert data["@type"] == "BlogPosting"
        assert data["headline"] == "Scaling"
        assert data["wordCount"] == 3
        assert data["author"] == {
            "@type": "Person",
            "name": "Jane Doe",
            "url": "https://jane.dev",
            "sameAs": ["https://github.com/jane"],
        }
        assert data["publisher"] == {"@type": "Organization", "name": "Test Blog"}

    def test_modified_defaults_to_published(self, post_factory: Callable, site_config: SiteConfig) -> None:
        meta = build_seo(post_factory("p"), site_config)
        assert meta.modified == meta.published
        assert "author" not in meta.structured_data

    def test_no_site_url_leaves_out_absolute_links(self, post_factory: Callable) -> None:
        config = SiteConfig(title="Local")
        meta = build_seo(post_factory("p"), config)
        rendered = render_seo_tags(meta, config)
        assert meta.url == ""
        assert "canonical" not in rendered
        assert "og:url" not in rendered


class TestRendering:
    def test_tags_are_escaped(self, post_factory: Callable, site_config: SiteConfig) -> None:
        post = post_factory("p", title='Say "hi" & <bye>', description='Quotes " and <tags>')
        rendered = render_seo_tags(build_seo(post, site_config), site_config)
        assert '<meta name="description" content="Quotes &quot; and &lt;tags&gt;">' in rendered
        assert '<meta property="og:title" content="Say &quot;hi&quot; &amp; &lt;bye&gt;">' in rendered
        assert ld_payload(rendered)["headline"] == 'Say "hi" & <bye>'

    def test_json_ld_cannot_close_the_script(self) -> None:
        assert "</script>" not in json_ld({"headline": "</script><script>alert(1)"})

    def test_twitter_card_follows_image(self, post_factory: Callable, site_config: SiteConfig) -> None:
        plain = render_seo_tags(build_seo(post_factory("p"), site_config), site_config)
        with_image = render_seo_tags(build_seo(post_factory("p", image="a.png"), site_config), site_config)
        assert 'content="summary"' in plain
        assert 'content="summary_large_image"' in with_image

    def test_site_pages_use_site_description(self, site_config: SiteConfig) -> None:
        meta = site_seo(site_config, "Test Blog", "")
        assert meta.description == "A blog used in tests."
        assert meta.url == "https://blog.test"
        assert meta.structured_data["@type"] == "WebSite"
