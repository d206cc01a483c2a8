"""Built-in scaffolding plugins.

Every plugin is a frozen dataclass whose fields are declared with :func:`option`.
The tag passed to ``option`` is the field's semantic type as published by the
plugin registry (``bool``, ``int``, ``float``, ``str``, ``list[str]``, each
optionally suffixed with ``| None``).
"""

from __future__ import annotations

import dataclasses
import logging
import shutil
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import yaml

from pkgforge.errors import PackageGenerationError
from pkgforge.licenses import canonical_license_name, render_license

logger = logging.getLogger(__name__)

FIELD_TAG_KEY = "pkgforge.tag"
FIELD_HELP_KEY = "pkgforge.help"


def option(
    tag: str,
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Callable[[], Any] | None = None,
    help: str = "",
) -> Any:
    metadata = {FIELD_TAG_KEY: tag, FIELD_HELP_KEY: help}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass(frozen=True)
class RenderedFile:
    path: str
    content: str


@dataclass(frozen=True)
class RenderContext:
    package_name: str
    module_name: str
    user: str
    authors: tuple[str, ...]
    python_version: str
    year: int
    plugins: tuple[Plugin, ...]
    pyproject: dict[str, Any] = field(default_factory=dict)

    @property
    def repo_url(self) -> str | None:
        if not self.user:
            return None
        return f"https://github.com/{self.user}/{self.package_name}"

    @property
    def copyright_holder(self) -> str:
        if self.authors:
            return ", ".join(author.split("<", 1)[0].strip() for author in self.authors)
        return self.user or self.package_name


class Plugin:
    """Base class for scaffolding units."""

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        return None

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        return ()

    def badge(self, ctx: RenderContext) -> str | None:
        return None

    def post_generate(self, package_dir: Path, ctx: RenderContext) -> None:
        return None


def _table(container: dict[str, Any], *keys: str) -> dict[str, Any]:
    current = container
    for key in keys:
        current = current.setdefault(key, {})
    return current


def _yaml_dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


_BUILD_BACKENDS: dict[str, tuple[list[str], str]] = {
    "hatchling": (["hatchling"], "hatchling.build"),
    "setuptools": (["setuptools>=68"], "setuptools.build_meta"),
    "flit": (["flit_core>=3.4"], "flit_core.buildapi"),
}


@dataclass(frozen=True)
class ProjectFile(Plugin):
    """Writes pyproject.toml with the project metadata."""

    version: str = option("str", default="0.1.0", help="Initial package version.")
    build_backend: str = option(
        "str", default="hatchling", help="Build backend: hatchling, setuptools or flit."
    )

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        backend = _BUILD_BACKENDS.get(self.build_backend)
        if backend is None:
            supported = ", ".join(sorted(_BUILD_BACKENDS))
            raise PackageGenerationError(
                f"Unsupported build backend {self.build_backend!r}. Supported: {supported}."
            )
        requires, build_backend = backend
        build_system = _table(pyproject, "build-system")
        build_system["requires"] = list(requires)
        build_system["build-backend"] = build_backend
        _table(pyproject, "project")["version"] = self.version

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        yield RenderedFile("pyproject.toml", tomlkit.dumps(ctx.pyproject))


@dataclass(frozen=True)
class SrcDir(Plugin):
    """Creates the importable package under src/."""

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        yield RenderedFile(
            f"src/{ctx.module_name}/__init__.py",
            f'"""{ctx.package_name}."""\n\n__all__: list[str] = []\n',
        )


@dataclass(frozen=True)
class Tests(Plugin):
    """Sets up a pytest test suite."""

    project: bool = option(
        "bool",
        default=False,
        help="Declare test requirements as a dependency group instead of an extra.",
    )
    fail_under: float = option(
        "float", default=0.0, help="Minimum coverage percentage (0 disables coverage)."
    )

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        requirements = ["pytest>=8"]
        if self.fail_under > 0:
            requirements.append("pytest-cov>=5")
            _table(pyproject, "tool", "coverage", "report")["fail_under"] = self.fail_under
        if self.project:
            _table(pyproject, "dependency-groups")["test"] = requirements
        else:
            _table(pyproject, "project", "optional-dependencies")["test"] = requirements
        pytest_options = _table(pyproject, "tool", "pytest", "ini_options")
        pytest_options["testpaths"] = ["tests"]
        if self.fail_under > 0:
            pytest_options["addopts"] = f"--cov={ctx.module_name}"

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        yield RenderedFile(
            f"tests/test_{ctx.module_name}.py",
            f"import {ctx.module_name}\n\n\n"
            f"def test_import() -> None:\n"
            f"    assert {ctx.module_name}.__name__ == {ctx.module_name!r}\n",
        )


@dataclass(frozen=True)
class Readme(Plugin):
    """Writes a README with badges contributed by other plugins."""

    destination: str = option("str", default="README.md", help="README file name.")
    inline_badges: bool = option(
        "bool", default=False, help="Put all badges on a single line."
    )

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        badges = [b for b in (p.badge(ctx) for p in ctx.plugins) if b]
        lines = [f"# {ctx.package_name}", ""]
        if badges:
            if self.inline_badges:
                lines.append(" ".join(badges))
            else:
                lines.extend(badges)
            lines.append("")
        lines.extend(["## Installation", "", "```bash"])
        if ctx.repo_url:
            lines.append(f"pip install git+{ctx.repo_url}")
        else:
            lines.append("pip install -e .")
        lines.extend(["```", ""])
        yield RenderedFile(self.destination, "\n".join(lines))


@dataclass(frozen=True)
class License(Plugin):
    """Adds a license file and the SPDX identifier in pyproject.toml."""

    name: str = option("str", default="MIT", help="SPDX identifier of the license.")
    destination: str = option("str", default="LICENSE", help="License file name.")
    year: int | None = option("int | None", default=None, help="Copyright year (default: now).")

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        _table(pyproject, "project")["license"] = canonical_license_name(self.name)

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        year = self.year if self.year is not None else ctx.year
        yield RenderedFile(
            self.destination,
            render_license(self.name, year=year, holder=ctx.copyright_holder),
        )


_GITIGNORE_DEFAULTS = (
    "__pycache__/",
    "*.py[cod]",
    "*.egg-info/",
    ".venv/",
    "build/",
    "dist/",
    ".pytest_cache/",
    ".coverage",
)
_LOCK_FILES = ("uv.lock", "poetry.lock", "pdm.lock")


def _run_git(argv: list[str], *, cwd: Path) -> subprocess.CompletedProcess[str]:
    proc = subprocess.run(
        ["git", *argv],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if proc.returncode != 0:
        msg = proc.stderr.strip() or proc.stdout.strip() or "command failed"
        raise PackageGenerationError(f"git {' '.join(argv)}: {msg}")
    return proc


@dataclass(frozen=True)
class Git(Plugin):
    """Initializes a git repository with a .gitignore and an initial commit."""

    ignore: list[str] = option(
        "list[str]", default_factory=list, help="Extra .gitignore patterns."
    )
    name: str | None = option("str | None", default=None, help="Commit author name.")
    email: str | None = option("str | None", default=None, help="Commit author email.")
    branch: str | None = option(
        "str | None", default=None, help="Initial branch name (default: main)."
    )
    ssh: bool = option("bool", default=False, help="Use an SSH remote URL.")
    manifest: bool = option("bool", default=False, help="Commit lock files.")
    gpgsign: bool = option("bool", default=False, help="Sign the initial commit.")

    def remote_url(self, ctx: RenderContext) -> str | None:
        if not ctx.user:
            return None
        if self.ssh:
            return f"git@github.com:{ctx.user}/{ctx.package_name}.git"
        return f"https://github.com/{ctx.user}/{ctx.package_name}.git"

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        patterns = list(_GITIGNORE_DEFAULTS)
        if not self.manifest:
            patterns.extend(_LOCK_FILES)
        for pattern in self.ignore:
            if pattern not in patterns:
                patterns.append(pattern)
        yield RenderedFile(".gitignore", "\n".join(patterns) + "\n")

    def post_generate(self, package_dir: Path, ctx: RenderContext) -> None:
        if shutil.which("git") is None:
            raise PackageGenerationError("The Git plugin requires `git` on PATH.")
        _run_git(["init", "-b", self.branch or "main"], cwd=package_dir)
        if self.name:
            _run_git(["config", "user.name", self.name], cwd=package_dir)
        if self.email:
            _run_git(["config", "user.email", self.email], cwd=package_dir)
        remote = self.remote_url(ctx)
        if remote is not None:
            _run_git(["remote", "add", "origin", remote], cwd=package_dir)
        _run_git(["add", "-A"], cwd=package_dir)
        sign_flag = "--gpg-sign" if self.gpgsign else "--no-gpg-sign"
        _run_git(["commit", sign_flag, "-m", "Initial commit"], cwd=package_dir)
        logger.info("Initialized git repository in %s", package_dir)


@dataclass(frozen=True)
class GitHubActions(Plugin):
    """Adds a GitHub Actions workflow running the test suite."""

    destination: str = option("str", default="CI.yml", help="Workflow file name.")
    python_versions: list[str] = option(
        "list[str]",
        default_factory=lambda: ["3.11", "3.12"],
        help="Python versions in the test matrix.",
    )
    linux: bool = option("bool", default=True, help="Test on ubuntu-latest.")
    osx: bool = option("bool", default=False, help="Test on macos-latest.")
    windows: bool = option("bool", default=False, help="Test on windows-latest.")
    coverage: bool = option("bool", default=True, help="Upload coverage reports.")

    def _runners(self) -> list[str]:
        runners = []
        if self.linux:
            runners.append("ubuntu-latest")
        if self.osx:
            runners.append("macos-latest")
        if self.windows:
            runners.append("windows-latest")
        return runners

    def badge(self, ctx: RenderContext) -> str | None:
        if ctx.repo_url is None:
            return None
        url = f"{ctx.repo_url}/actions/workflows/{self.destination}"
        return f"[![CI]({url}/badge.svg)]({url})"

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        runners = self._runners()
        if not runners:
            raise PackageGenerationError("GitHubActions needs at least one of linux, osx, windows.")
        steps: list[dict[str, Any]] = [
            {"uses": "actions/checkout@v4"},
            {
                "uses": "actions/setup-python@v5",
                "with": {"python-version": "${{ matrix.python-version }}"},
            },
            {"run": "python -m pip install -e .[test]"},
        ]
        if self.coverage:
            steps.append({"run": f"python -m pytest --cov={ctx.module_name} --cov-report=xml"})
            steps.append({"uses": "codecov/codecov-action@v4"})
        else:
            steps.append({"run": "python -m pytest"})
        workflow = {
            "name": "CI",
            "on": {"push": {"branches": ["main"]}, "pull_request": {}},
            "jobs": {
                "test": {
                    "runs-on": "${{ matrix.os }}",
                    "strategy": {
                        "fail-fast": False,
                        "matrix": {
                            "os": runners,
                            "python-version": list(self.python_versions),
                        },
                    },
                    "steps": steps,
                }
            },
        }
        yield RenderedFile(f".github/workflows/{self.destination}", _yaml_dump(workflow))


_FORMATTER_STYLES = ("ruff", "black", "blue")


@dataclass(frozen=True)
class Formatter(Plugin):
    """Configures ruff formatting in pyproject.toml."""

    style: str = option("str", default="ruff", help="One of ruff, black, blue.")
    indent: int = option("int", default=4, help="Indent width.")
    line_length: int = option("int", default=88, help="Maximum line length.")

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        if self.style not in _FORMATTER_STYLES:
            raise PackageGenerationError(
                f"Unsupported formatter style {self.style!r}. "
                f"Supported: {', '.join(_FORMATTER_STYLES)}."
            )
        ruff = _table(pyproject, "tool", "ruff")
        ruff["line-length"] = self.line_length
        ruff["indent-width"] = self.indent
        quote_style = "single" if self.style == "blue" else "double"
        _table(pyproject, "tool", "ruff", "format")["quote-style"] = quote_style


@dataclass(frozen=True)
class Documenter(Plugin):
    """Sets up MkDocs documentation."""

    theme: str = option("str", default="material", help="MkDocs theme name.")
    site_name: str | None = option(
        "str | None", default=None, help="Site title (default: package name)."
    )

    def update_pyproject(self, pyproject: dict[str, Any], ctx: RenderContext) -> None:
        requirements = ["mkdocs>=1.5"]
        if self.theme == "material":
            requirements.append("mkdocs-material>=9")
        _table(pyproject, "project", "optional-dependencies")["docs"] = requirements

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        config: dict[str, Any] = {
            "site_name": self.site_name or ctx.package_name,
            "theme": {"name": self.theme},
            "nav": [{"Home": "index.md"}],
        }
        if ctx.repo_url:
            config["repo_url"] = ctx.repo_url
        yield RenderedFile("mkdocs.yml", _yaml_dump(config))
        yield RenderedFile("docs/index.md", f"# {self.site_name or ctx.package_name}\n")


@dataclass(frozen=True)
class Codecov(Plugin):
    """Adds a Codecov configuration and badge."""

    def badge(self, ctx: RenderContext) -> str | None:
        if not ctx.user:
            return None
        url = f"https://codecov.io/gh/{ctx.user}/{ctx.package_name}"
        return f"[![Coverage]({url}/branch/main/graph/badge.svg)]({url})"

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        config = {
            "coverage": {"status": {"project": {"default": {"informational": True}}}},
            "comment": False,
        }
        yield RenderedFile(".codecov.yml", _yaml_dump(config))


@dataclass(frozen=True)
class Dependabot(Plugin):
    """Adds a Dependabot configuration for pip and GitHub Actions."""

    def render(self, ctx: RenderContext) -> Iterable[RenderedFile]:
        config = {
            "version": 2,
            "updates": [
                {
                    "package-ecosystem": ecosystem,
                    "directory": "/",
                    "schedule": {"interval": "weekly"},
                }
                for ecosystem in ("pip", "github-actions")
            ],
        }
        yield RenderedFile(".github/dependabot.yml", _yaml_dump(config))
