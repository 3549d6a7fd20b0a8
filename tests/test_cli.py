"""Tests for the command line entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from blogsmith.cli import main


@pytest.fixture
def project(tmp_path: Path, write_post: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "site.toml").write_text(
        'title = "CLI Blog"\nurl = "https://cli.test"\npaginate = 5\n', encoding="utf-8"
    )
    write_post("2024-01-01-hello.md", "title: Hello\ncategories: [Rails]")
    monkeypatch.chdir(tmp_path)
    for name in ("GITHUB_REPOSITORY", "GITHUB_ACTOR", "GITHUB_REF_NAME", "GITHUB_TOKEN", "AMPLIFY_APP_ID"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestBuildCommand:
    def test_build(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["build"]) == 0
        assert (project / "_site" / "index.html").is_file()
        assert (project / "_site" / "posts" / "hello.html").is_file()
        out = capsys.readouterr().out
        assert "Build completed in" in out
        assert "(1 posts)" in out

    def test_options_override_config(self, project: Path) -> None:
        assert main(["build", "--output", "public", "--no-clean"]) == 0
        assert (project / "public" / "index.html").is_file()

    def test_content_error_is_reported(
        self, project: Path, write_post: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        write_post("2024-02-01-broken.md", "categories: [Rails]")
        assert main(["build"]) == 1
        err = capsys.readouterr().err
        assert "Error: 2024-02-01-broken.md: missing required front matter field 'title'" in err
        assert not (project / "_site").exists()

    def test_invalid_config_file(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (project / "broken.toml").write_text("title = ", encoding="utf-8")
        assert main(["--config", "broken.toml", "build"]) == 1
        assert "Invalid TOML" in capsys.readouterr().err


class TestPublishCommand:
    def test_requires_repository(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["publish", "--target", "production"]) == 1
        assert "No repository configured" in capsys.readouterr().err

    def test_requires_target(self, project: Path) -> None:
        with pytest.raises(SystemExit):
            main(["publish"])
