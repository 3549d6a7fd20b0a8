from __future__ import annotations

import html
import json
import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from .config import PublishSettings
from .errors import PublishError
from .github import GitHubClient
from .gitops import GitRepo
from .render import write_text
from .utils import write_nojekyll

logger = logging.getLogger(__name__)

UNSAFE_BRANCH_CHARS_RE = re.compile(r"[^a-zA-Z0-9-]")

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class Artifact:
    root: Path


@dataclass(frozen=True)
class PublishOutcome:
    target: str
    url: str = ""
    detail: str = ""


class Publisher(Protocol):
    target: str

    def publish(self, artifact: Artifact) -> PublishOutcome: ...


class ProductionPublisher:
    """Requests a release job on the hosting application; does not wait for it to finish."""

    target = "production"

    def __init__(self, app_id: str, branch: str = "main", runner: Runner = subprocess.run) -> None:
        self.app_id = app_id
        self.branch = branch
        self.runner = runner

    def command(self) -> list[str]:
        return [
            "aws",
            "amplify",
            "start-job",
            "--app-id",
            self.app_id,
            "--branch-name",
            self.branch,
            "--job-type",
            "RELEASE",
            "--output",
            "json",
        ]

    def publish(self, artifact: Artifact) -> PublishOutcome:
        if not self.app_id:
            raise PublishError("No hosting application id configured (publish.amplify_app_id or AMPLIFY_APP_ID)")
        logger.info("Triggering release job for app %s on branch %s", self.app_id, self.branch)
        try:
            result = self.runner(self.command(), capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise PublishError("aws CLI not found; cannot trigger the production release") from exc
        if result.returncode != 0:
            stderr = (result.stderr or "").strip() or "no stderr"
            raise PublishError(f"Release trigger failed (exit {result.returncode}): {stderr}")
        try:
            payload = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise PublishError(f"Release trigger returned invalid JSON: {exc}") from exc
        job = payload.get("jobSummary") or {}
        job_id = job.get("jobId")
        if not job_id:
            raise PublishError("Release trigger was not acknowledged: no job id in the response")
        status = job.get("status", "PENDING")
        logger.info("Production release job %s accepted (%s)", job_id, status)
        return PublishOutcome(self.target, detail=f"release job {job_id} ({status})")


def sanitize_branch_name(name: str) -> str:
    return UNSAFE_BRANCH_CHARS_RE.sub("-", name).lower()


def preview_dir_name(branch: str, prefix: str = "branch-") -> str:
    return f"{prefix}{sanitize_branch_name(branch)}"


def render_preview_index(dir_names: list[str], prefix: str = "branch-") -> str:
    items = []
    for name in sorted(dir_names):
        label = name[len(prefix) :] if name.startswith(prefix) else name
        items.append(f'<li><a href="{html.escape(name)}/">Branch: {html.escape(label)}</a></li>')
    return "\n".join(
        [
            "<!doctype html>",
            '<html lang="en">',
            '<head><meta charset="utf-8"><title>Branch Previews</title></head>',
            "<body>",
            "<h1>Branch Previews</h1>",
            f'<ul>{"".join(items)}</ul>',
            "</body>",
            "</html>",
        ]
    )


def preview_comment_body(marker: str, url: str, branch: str, workflow_url: str = "") -> str:
    lines = [
        marker,
        "## Preview Deployment",
        "",
        f"Your preview is ready at: {url}" if url else "Your preview has been deployed.",
        "",
        f"**Branch:** {branch}",
        "**Build Status:** Success",
    ]
    if workflow_url:
        lines.append(f"**Workflow Run:** [View Details]({workflow_url})")
    lines.extend(["", "This preview was deployed manually via workflow dispatch."])
    return "\n".join(lines)


class PreviewPublisher:
    """Publishes the artifact into a per-branch directory of the preview branch."""

    target = "preview"

    def __init__(
        self,
        repo: GitRepo,
        settings: PublishSettings,
        github: Optional[GitHubClient] = None,
    ) -> None:
        self.repo = repo
        self.settings = settings
        self.github = github

    @property
    def dir_name(self) -> str:
        return preview_dir_name(self.settings.branch, self.settings.preview_prefix)

    def preview_url(self) -> str:
        base = self.settings.preview_base_url()
        return f"{base}/{self.dir_name}/" if base else ""

    def checkout_preview_branch(self, path: Path) -> GitRepo:
        branch = self.settings.preview_branch
        if self.repo.fetch_branch(branch):
            tree = self.repo.add_worktree(path, branch)
            tree.configure_identity()
            return tree
        logger.info("Creating preview branch %s", branch)
        tree = self.repo.add_worktree(path)
        tree.configure_identity()
        tree.checkout_orphan(branch)
        write_text(path / "README.md", "# PR Previews\n")
        tree.commit_all(f"Initial {branch} branch")
        return tree

    def write_preview(self, root: Path, source: Path) -> None:
        target = root / self.dir_name
        if target.exists():
            shutil.rmtree(target)
        shutil.copytree(source, target)
        prefix = self.settings.preview_prefix
        names = [item.name for item in root.iterdir() if item.is_dir() and item.name.startswith(prefix)]
        write_text(root / "index.html", render_preview_index(names, prefix))
        write_nojekyll(root)

    def notify(self, url: str) -> str:
        branch = self.settings.branch
        if self.github is None:
            logger.info("No GitHub client configured; skipping pull request notification")
            return "notification skipped"
        pulls = self.github.open_pull_requests(branch)
        if not pulls:
            logger.info("No open PR found for branch %s", branch)
            return "no open pull request"
        number = pulls[0]["number"]
        body = preview_comment_body(self.settings.comment_marker, url, branch, self.settings.workflow_url())
        action, _ = self.github.upsert_comment(number, body, self.settings.comment_marker)
        return f"{action} comment on #{number}"

    def publish(self, artifact: Artifact) -> PublishOutcome:
        branch = self.settings.branch
        if not branch:
            raise PublishError("No source branch name to preview (GITHUB_REF_NAME)")
        logger.info("Creating preview deployment for branch %s in %s", branch, self.dir_name)
        with tempfile.TemporaryDirectory(prefix="blogsmith-preview-") as tmp:
            worktree_path = Path(tmp) / "preview"
            tree = self.checkout_preview_branch(worktree_path)
            try:
                self.write_preview(worktree_path, artifact.root)
                commit = tree.commit_all(f"Deploy preview for branch: {branch}")
                if commit is None:
                    logger.info("Preview for %s is unchanged", branch)
                tree.push(self.settings.preview_branch)
            finally:
                self.repo.remove_worktree(worktree_path)
        url = self.preview_url()
        detail = self.notify(url)
        return PublishOutcome(self.target, url=url, detail=detail)
