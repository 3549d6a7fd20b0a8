"""Publish pipeline: build, validate, authorize, then deploy exactly once.

The run walks ``building -> validating -> ready -> {production_deploy |
preview_deploy} -> done``. Any failure stops the run in ``failed`` (build or
external service errors) or ``rejected`` (missing output, missing permission);
both are terminal and nothing is retried. Deploy side effects only happen
after validation and authorization have both passed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol

from .builder import validate_output
from .errors import AuthorizationError, ConfigError, PublishError, SiteError, ValidationError
from .github import GitHubClient
from .publishers import Artifact, PublishOutcome, Publisher

logger = logging.getLogger(__name__)


class State(str, enum.Enum):
    BUILDING = "building"
    VALIDATING = "validating"
    READY = "ready"
    PRODUCTION_DEPLOY = "production_deploy"
    PREVIEW_DEPLOY = "preview_deploy"
    DONE = "done"
    REJECTED = "rejected"
    FAILED = "failed"


TERMINAL_STATES = {State.DONE, State.REJECTED, State.FAILED}
DEPLOY_STATES = {"production": State.PRODUCTION_DEPLOY, "preview": State.PREVIEW_DEPLOY}
EXIT_CODES = {State.DONE: 0, State.FAILED: 1, State.REJECTED: 2}


class Authorizer(Protocol):
    def check(self) -> None: ...


class PermissionCheck:
    """Allows the run only when the actor holds an elevated permission on the repository."""

    def __init__(
        self, github: GitHubClient, actor: str, allowed: tuple[str, ...] = ("admin", "maintain")
    ) -> None:
        self.github = github
        self.actor = actor
        self.allowed = allowed

    def check(self) -> None:
        if not self.actor:
            raise AuthorizationError("No actor to authorize (GITHUB_ACTOR is not set)")
        permission = self.github.permission_level(self.actor)
        logger.info("User %s has permission: %s", self.actor, permission)
        if permission.lower() not in self.allowed:
            raise AuthorizationError(
                f"User {self.actor} has {permission!r} permission; "
                f"only {', '.join(self.allowed)} may publish"
            )


@dataclass
class PipelineRun:
    target: str
    state: State = State.BUILDING
    history: list[State] = field(default_factory=lambda: [State.BUILDING])
    error: Optional[str] = None
    outcome: Optional[PublishOutcome] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.state, 1)

    def advance(self, state: State, error: Optional[str] = None) -> None:
        if self.finished:
            raise RuntimeError(f"Pipeline already finished in {self.state.value}")
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)
        if error is not None:
            self.error = error
            logger.error("Pipeline %s: %s", state.value, error)


class PublishPipeline:
    def __init__(
        self,
        build: Callable[[], Path],
        authorizer: Authorizer,
        publishers: Mapping[str, Publisher],
        target: str,
    ) -> None:
        if target not in DEPLOY_STATES:
            raise ConfigError(f"Unknown deploy target {target!r}; expected one of {', '.join(DEPLOY_STATES)}")
        if target not in publishers:
            raise ConfigError(f"No publisher configured for target {target!r}")
        self.build = build
        self.authorizer = authorizer
        self.publishers = publishers
        self.target = target

    def run(self) -> PipelineRun:
        run = PipelineRun(target=self.target)
        try:
            output_dir = self.build()
        except (SiteError, OSError) as exc:
            run.advance(State.FAILED, str(exc))
            return run

        run.advance(State.VALIDATING)
        try:
            validate_output(output_dir)
        except ValidationError as exc:
            run.advance(State.REJECTED, str(exc))
            return run

        run.advance(State.READY)
        try:
            self.authorizer.check()
        except AuthorizationError as exc:
            run.advance(State.REJECTED, str(exc))
            return run
        except PublishError as exc:
            run.advance(State.FAILED, str(exc))
            return run

        run.advance(DEPLOY_STATES[self.target])
        try:
            run.outcome = self.publishers[self.target].publish(Artifact(output_dir))
        except (PublishError, OSError) as exc:
            run.advance(State.FAILED, str(exc))
            return run

        run.advance(State.DONE)
        logger.info("Published %s: %s", self.target, run.outcome.url or run.outcome.detail)
        return run
