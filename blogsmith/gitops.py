"""Git CLI operations used by the preview publisher."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from .errors import PublishError

logger = logging.getLogger(__name__)

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"
MISSING_REF_MARKERS = ("couldn't find remote ref", "could not find remote ref")


class GitRepo:
    """Wraps git CLI operations on one working tree."""

    def __init__(self, path: Path, remote: str = "origin") -> None:
        self.path = path
        self.remote = remote

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                env={**os.environ, "LC_ALL": "C"},
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise PublishError("git executable not found") from exc
        if check and result.returncode != 0:
            stderr = result.stderr.strip() or "no stderr"
            raise PublishError(f"git {' '.join(args)} failed (exit {result.returncode}): {stderr}")
        return result

    def configure_identity(self, name: str = BOT_NAME, email: str = BOT_EMAIL) -> None:
        self._run("config", "user.name", name)
        self._run("config", "user.email", email)

    def fetch_branch(self, branch: str) -> bool:
        """Fetch ``branch`` from the remote into a local branch of the same name.

        Returns False only when the remote has no such branch; any other fetch
        failure raises ``PublishError``.
        """
        result = self._run("fetch", self.remote, f"+{branch}:{branch}", check=False)
        if result.returncode == 0:
            return True
        stderr = result.stderr.strip()
        if any(marker in stderr.lower() for marker in MISSING_REF_MARKERS):
            logger.info("Branch %s not found on %s", branch, self.remote)
            return False
        raise PublishError(
            f"git fetch {self.remote} {branch} failed (exit {result.returncode}): {stderr or 'no stderr'}"
        )

    def add_worktree(self, path: Path, branch: Optional[str] = None) -> "GitRepo":
        if branch:
            self._run("worktree", "add", str(path), branch)
        else:
            self._run("worktree", "add", "--detach", str(path))
        return GitRepo(path, self.remote)

    def remove_worktree(self, path: Path) -> None:
        self._run("worktree", "remove", "--force", str(path))

    def checkout_orphan(self, branch: str) -> None:
        self._run("checkout", "--orphan", branch)
        self._run("rm", "-rf", "--ignore-unmatch", ".")

    def commit_all(self, message: str) -> Optional[str]:
        """Stage all changes and commit. Returns the commit hash or None if nothing changed."""
        self._run("add", "-A")
        result = self._run("diff", "--cached", "--quiet", check=False)
        if result.returncode == 0:
            return None
        self._run("commit", "-m", message)
        return self.head_commit()

    def head_commit(self) -> Optional[str]:
        result = self._run("rev-parse", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def push(self, branch: str) -> None:
        self._run("push", self.remote, f"HEAD:refs/heads/{branch}")
