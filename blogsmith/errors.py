"""Error types raised while building and publishing a site.

Library code raises these; ``blogsmith.cli`` is the only place that turns them
into a message on stderr and a non-zero exit status.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class SiteError(Exception):
    """Base class for every build or publish failure."""


class ContentError(SiteError):
    """A post could not be read: malformed front matter, missing title or date."""

    def __init__(self, path: Union[Path, str], message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path.as_posix()}: {message}")


class ConfigError(SiteError):
    """Site configuration is invalid or references something that does not exist."""


class ValidationError(SiteError):
    """The build output is missing something the deploy steps rely on."""


class AuthorizationError(SiteError):
    """The actor running the pipeline lacks the required repository permission."""


class PublishError(SiteError):
    """An external deploy step (hosting API, git push, GitHub API) failed."""
