from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import ConfigError
from .models import Author
from .utils import join_url, parse_bool, parse_int

DEFAULT_PAGE_SIZE = 10
DEFAULT_RELATED_LIMIT = 4
DEFAULT_WORDS_PER_MINUTE = 200
FEED_LIMIT = 20
DEFAULT_COMMENT_MARKER = "<!-- blogsmith:preview-deployment -->"


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def parse_str_list(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise ConfigError(f"Expected a list of strings, got {type(value).__name__}")
    return tuple(item.strip() for item in items if item.strip())


def parse_authors(value: object) -> dict[str, Author]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("'authors' must be a mapping of author key to details")
    authors = {}
    for key, data in value.items():
        if not isinstance(data, dict):
            raise ConfigError(f"Author {key!r} must be a mapping")
        name = str(data.get("display_name") or data.get("name") or "").strip()
        if not name:
            raise ConfigError(f"Author {key!r} has no name")
        authors[str(key)] = Author(
            key=str(key),
            name=name,
            avatar=str(data.get("avatar") or ""),
            email=str(data.get("email") or ""),
            web=str(data.get("web") or ""),
            twitter=str(data.get("twitter") or ""),
            linkedin=str(data.get("linkedin") or ""),
            github=str(data.get("github") or ""),
            bio=str(data.get("description") or data.get("bio") or ""),
        )
    return authors


@dataclass(frozen=True)
class SiteConfig:
    title: str = "Blogsmith"
    description: str = ""
    url: str = ""
    baseurl: str = ""
    posts_dir: Path = Path("_posts")
    static_dir: Path = Path("static")
    output_dir: Path = Path("_site")
    templates_dir: Path = Path("templates")
    page_size: int = DEFAULT_PAGE_SIZE
    archive_page_threshold: int = 0
    related_limit: int = DEFAULT_RELATED_LIMIT
    related_min_shared: int = 1
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
    seo_keywords: tuple[str, ...] = ()
    authors: dict[str, Author] = field(default_factory=dict)
    default_author: str = ""
    twitter_username: str = ""
    logo: str = ""
    analytics_id: str = ""
    newsletter_url: str = ""
    enable_newsletter: bool = True
    enable_rss: bool = True
    enable_atom: bool = True
    enable_sitemap: bool = True
    enable_archives: bool = True
    enable_404: bool = True
    feed_limit: int = FEED_LIMIT
    toc_depth: str = "2-4"
    future: bool = False
    custom_domain: str = ""
    write_nojekyll: bool = True
    clean: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping, base_dir: Optional[Path] = None) -> "SiteConfig":
        base_dir = base_dir or Path(".")

        def path_value(key: str, default: str) -> Path:
            path = Path(str(data.get(key) or default))
            return path if path.is_absolute() else base_dir / path

        def bool_value(key: str, default: bool) -> bool:
            value = data.get(key)
            return default if value is None else parse_bool(value)

        page_size = parse_int(data.get("paginate"), DEFAULT_PAGE_SIZE)
        if page_size < 1:
            raise ConfigError(f"'paginate' must be at least 1, got {page_size}")
        related_limit = parse_int(data.get("related_limit"), DEFAULT_RELATED_LIMIT)
        if related_limit < 0:
            raise ConfigError(f"'related_limit' must not be negative, got {related_limit}")

        authors = parse_authors(data.get("authors"))
        default_author = str(data.get("default_author") or "")
        if default_author and default_author not in authors:
            raise ConfigError(f"default_author {default_author!r} is not declared under 'authors'")

        twitter = data.get("twitter")
        twitter_username = str(data.get("twitter_username") or "")
        if not twitter_username and isinstance(twitter, dict):
            twitter_username = str(twitter.get("username") or "")

        return cls(
            title=str(data.get("title") or data.get("name") or cls.title),
            description=str(data.get("description") or ""),
            url=str(data.get("url") or "").rstrip("/"),
            baseurl=str(data.get("baseurl") or "").strip("/"),
            posts_dir=path_value("posts", "_posts"),
            static_dir=path_value("static", "static"),
            output_dir=path_value("output", "_site"),
            templates_dir=path_value("templates", "templates"),
            page_size=page_size,
            archive_page_threshold=max(0, parse_int(data.get("archive_page_threshold"), 0)),
            related_limit=related_limit,
            related_min_shared=max(1, parse_int(data.get("related_min_shared"), 1)),
            words_per_minute=parse_int(data.get("words_per_minute"), DEFAULT_WORDS_PER_MINUTE),
            seo_keywords=parse_str_list(data.get("seo_keywords")),
            authors=authors,
            default_author=default_author,
            twitter_username=twitter_username.lstrip("@"),
            logo=str(data.get("logo") or ""),
            analytics_id=str(data.get("analytics_id") or data.get("google_analytics") or ""),
            newsletter_url=str(data.get("newsletter_url") or data.get("mailchimp-list") or ""),
            enable_newsletter=bool_value("enable_newsletter", True),
            enable_rss=bool_value("enable_rss", True),
            enable_atom=bool_value("enable_atom", True),
            enable_sitemap=bool_value("enable_sitemap", True),
            enable_archives=bool_value("enable_archives", True),
            enable_404=bool_value("enable_404", True),
            feed_limit=parse_int(data.get("feed_limit"), FEED_LIMIT),
            toc_depth=str(data.get("toc_depth") or "2-4"),
            future=bool_value("future", False),
            custom_domain=str(data.get("custom_domain") or "").strip(),
            write_nojekyll=bool_value("write_nojekyll", True),
            clean=bool_value("clean", True),
        )

    @property
    def site_url(self) -> str:
        url = self.url
        if not url and self.custom_domain:
            url = f"https://{self.custom_domain}"
        if self.baseurl:
            return join_url(url, self.baseurl)
        return url

    def absolute_url(self, path: str) -> str:
        if not self.site_url:
            return ""
        return join_url(self.site_url, path)


@dataclass(frozen=True)
class PublishSettings:
    repository: str = ""
    actor: str = ""
    branch: str = ""
    token: str = ""
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    run_id: str = ""
    remote: str = "origin"
    preview_branch: str = "gh-pages"
    preview_prefix: str = "branch-"
    production_branch: str = "main"
    amplify_app_id: str = ""
    comment_marker: str = DEFAULT_COMMENT_MARKER
    allowed_permissions: tuple[str, ...] = ("admin", "maintain")
    pages_url: str = ""

    @classmethod
    def from_mapping(
        cls, data: Optional[Mapping], env: Optional[Mapping[str, str]] = None
    ) -> "PublishSettings":
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError("'publish' must be a mapping")
        env = os.environ if env is None else env

        def pick(key: str, env_key: str, default: str = "") -> str:
            value = data.get(key)
            if value is None or value == "":
                value = env.get(env_key, "")
            return str(value or default)

        allowed = parse_str_list(data.get("allowed_permissions")) or ("admin", "maintain")
        return cls(
            repository=pick("repository", "GITHUB_REPOSITORY"),
            actor=pick("actor", "GITHUB_ACTOR"),
            branch=pick("branch", "GITHUB_REF_NAME"),
            token=env.get("GITHUB_TOKEN", ""),
            api_url=pick("api_url", "GITHUB_API_URL", "https://api.github.com").rstrip("/"),
            server_url=pick("server_url", "GITHUB_SERVER_URL", "https://github.com").rstrip("/"),
            run_id=pick("run_id", "GITHUB_RUN_ID"),
            remote=str(data.get("remote") or "origin"),
            preview_branch=str(data.get("preview_branch") or "gh-pages"),
            preview_prefix=str(data.get("preview_prefix") or "branch-"),
            production_branch=str(data.get("production_branch") or "main"),
            amplify_app_id=pick("amplify_app_id", "AMPLIFY_APP_ID"),
            comment_marker=str(data.get("comment_marker") or DEFAULT_COMMENT_MARKER),
            allowed_permissions=tuple(item.lower() for item in allowed),
            pages_url=str(data.get("pages_url") or ""),
        )

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0] if self.repository else ""

    @property
    def repo_name(self) -> str:
        return self.repository.split("/", 1)[1] if "/" in self.repository else ""

    def preview_base_url(self) -> str:
        if self.pages_url:
            return self.pages_url.rstrip("/")
        if not self.owner or not self.repo_name:
            return ""
        return f"https://{self.owner}.github.io/{self.repo_name}"

    def workflow_url(self) -> str:
        if not self.repository or not self.run_id:
            return ""
        return f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"
