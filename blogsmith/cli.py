from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .builder import build_site, validate_output
from .config import PublishSettings, SiteConfig, load_config
from .errors import ConfigError, SiteError
from .github import GitHubClient
from .gitops import GitRepo
from .pipeline import PermissionCheck, PublishPipeline, State
from .publishers import PreviewPublisher, ProductionPublisher
from .utils import parse_bool, parse_int


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def add_site_options(parser: argparse.ArgumentParser, config: dict) -> None:
    def cfg_str(key: str, default: str) -> str:
        value = config.get(key)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = config.get(key)
        return default if value is None else parse_bool(value)

    parser.add_argument("--posts", default=cfg_str("posts", "_posts"), help="Directory containing Markdown posts.")
    parser.add_argument("--static", default=cfg_str("static", "static"), help="Directory containing static assets.")
    parser.add_argument("--output", default=cfg_str("output", "_site"), help="Output directory for the site.")
    parser.add_argument(
        "--templates",
        default=cfg_str("templates", "templates"),
        help="Directory holding a base.html overriding the bundled template.",
    )
    parser.add_argument("--site-url", default=cfg_str("url", ""), help="Public site URL used for feeds and SEO.")
    parser.add_argument(
        "--paginate",
        default=parse_int(config.get("paginate"), 10),
        type=int,
        help="Number of posts per listing page.",
    )
    parser.add_argument(
        "--future",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("future", False),
        help="Publish future-dated posts.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before build.",
    )


def site_config(args: argparse.Namespace, data: dict) -> SiteConfig:
    merged = dict(data)
    merged.update(
        {
            "posts": args.posts,
            "static": args.static,
            "output": args.output,
            "templates": args.templates,
            "url": args.site_url,
            "paginate": args.paginate,
            "future": args.future,
            "clean": args.clean,
        }
    )
    return SiteConfig.from_mapping(merged)


def run_build(args: argparse.Namespace, data: dict) -> int:
    config = site_config(args, data)
    start = time.perf_counter()
    result = build_site(config, Path.cwd())
    validate_output(result.output_dir)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {result.output_dir} ({len(result.index.posts)} posts)")
    return 0


def publish_pipeline(
    args: argparse.Namespace, config: SiteConfig, settings: PublishSettings, github: GitHubClient
) -> PublishPipeline:
    publishers = {
        "production": ProductionPublisher(settings.amplify_app_id, settings.production_branch),
        "preview": PreviewPublisher(GitRepo(Path(args.repo), settings.remote), settings, github),
    }

    def build() -> Path:
        if args.skip_build:
            return config.output_dir
        include_future = config.future or args.target == "preview"
        return build_site(config, Path.cwd(), include_future=include_future).output_dir

    return PublishPipeline(
        build,
        PermissionCheck(github, settings.actor, settings.allowed_permissions),
        publishers,
        args.target,
    )


def run_publish(args: argparse.Namespace, data: dict) -> int:
    config = site_config(args, data)
    settings = PublishSettings.from_mapping(data.get("publish"))
    if not settings.repository:
        raise ConfigError("No repository configured (publish.repository or GITHUB_REPOSITORY)")
    with GitHubClient(settings.repository, settings.token, settings.api_url) as github:
        run = publish_pipeline(args, config, settings, github).run()
    if run.state is State.DONE and run.outcome is not None:
        print(f"Deployed {args.target}: {run.outcome.url or run.outcome.detail}")
    else:
        print(f"Publish {run.state.value}: {run.error}", file=sys.stderr)
    return run.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    try:
        config = load_config(Path(pre_args.config))
    except SiteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser = argparse.ArgumentParser(prog="blogsmith", description="Static Markdown blog generator and publisher.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Render the site into the output directory.")
    add_site_options(build_parser, config)
    build_parser.set_defaults(func=run_build)

    publish_parser = subparsers.add_parser("publish", help="Build, validate, authorize and deploy the site.")
    add_site_options(publish_parser, config)
    publish_parser.add_argument(
        "--target", required=True, choices=["production", "preview"], help="Deployment target."
    )
    publish_parser.add_argument(
        "--skip-build", action="store_true", help="Publish the existing output directory without rebuilding."
    )
    publish_parser.add_argument("--repo", default=".", help="Path to the git checkout used for preview deploys.")
    publish_parser.set_defaults(func=run_publish)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.func(args, config)
    except SiteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
