from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest
import tomlkit
import yaml

from pkgforge import PackageGenerationError, Plugin, RegistryError, Template, describe_plugin
from pkgforge.licenses import canonical_license_name
from pkgforge.plugins import (
    Codecov,
    Dependabot,
    Documenter,
    Formatter,
    Git,
    GitHubActions,
    License,
    Readme,
    Tests,
)
from pkgforge.template import module_name_for


def _files(template: Template, name: str = "my-pkg") -> dict[str, str]:
    _ctx, rendered = template.render(name)
    return {item.path: item.content for item in rendered}


def test_generate_writes_default_layout(tmp_path: Path, git_calls: list[list[str]]) -> None:
    template = Template(
        user="jane",
        authors=("Jane Doe <jane@example.com>",),
        python_version="3.11",
        output_dir=tmp_path,
    )
    result = template.generate("my-pkg")

    package_dir = tmp_path / "my-pkg"
    assert result.package_dir == package_dir
    assert result.dry_run is False
    for rel in (
        "pyproject.toml",
        "src/my_pkg/__init__.py",
        "tests/test_my_pkg.py",
        "README.md",
        "LICENSE",
        ".gitignore",
    ):
        assert (package_dir / rel).is_file(), rel

    pyproject = tomlkit.parse((package_dir / "pyproject.toml").read_text(encoding="utf-8"))
    project = pyproject["project"]
    assert project["name"] == "my-pkg"
    assert project["requires-python"] == ">=3.11"
    assert project["license"] == "MIT"
    assert project["authors"][0]["email"] == "jane@example.com"
    assert pyproject["build-system"]["build-backend"] == "hatchling.build"
    assert "Jane Doe" in (package_dir / "LICENSE").read_text(encoding="utf-8")

    assert git_calls[0] == ["init", "-b", "main"]
    assert ["remote", "add", "origin", "https://github.com/jane/my-pkg.git"] in git_calls
    assert git_calls[-1] == ["commit", "--no-gpg-sign", "-m", "Initial commit"]


def test_dry_run_touches_nothing(tmp_path: Path, git_calls: list[list[str]]) -> None:
    result = Template(output_dir=tmp_path).generate("demo", dry_run=True)
    assert result.dry_run is True
    assert tmp_path / "demo" / "pyproject.toml" in result.files
    assert not (tmp_path / "demo").exists()
    assert git_calls == []


def test_existing_destination_fails(tmp_path: Path) -> None:
    (tmp_path / "demo").mkdir()
    with pytest.raises(PackageGenerationError, match="already exists"):
        Template(output_dir=tmp_path).generate("demo", dry_run=True)


def test_git_without_executable_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pkgforge.plugins.shutil.which", lambda name: None)
    with pytest.raises(PackageGenerationError, match="requires `git`"):
        Template(output_dir=tmp_path).generate("demo")
    assert not (tmp_path / "demo").exists()


def test_failed_write_removes_package_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def deny(*args: object, **kwargs: object) -> int:
        raise PermissionError("read-only file system")

    monkeypatch.setattr(Path, "write_text", deny)
    with pytest.raises(PackageGenerationError, match="Failed to write package files"):
        Template(output_dir=tmp_path).generate("demo")
    assert not (tmp_path / "demo").exists()


@pytest.mark.parametrize("name", ["1bad!", "-lead", "trail-", "class", ""])
def test_invalid_package_names(name: str) -> None:
    with pytest.raises(PackageGenerationError):
        Template().render(name)


def test_module_name_for() -> None:
    assert module_name_for("My.Cool-Pkg") == "my_cool_pkg"


@pytest.mark.parametrize("version", ["2.7", "three", "4.0"])
def test_invalid_python_versions(version: str) -> None:
    with pytest.raises(PackageGenerationError):
        Template(python_version=version).render("demo")


def test_supplied_plugin_replaces_default() -> None:
    files = _files(Template(plugins=(License(name="isc", year=2001),)))
    assert files["LICENSE"].startswith("ISC License")
    assert "2001" in files["LICENSE"]
    assert tomlkit.parse(files["pyproject.toml"])["project"]["license"] == "ISC"


def test_unsupported_license() -> None:
    with pytest.raises(PackageGenerationError, match="Unsupported license"):
        canonical_license_name("WTFPL")


def test_two_plugins_writing_one_path_fail() -> None:
    with pytest.raises(PackageGenerationError, match="both write LICENSE"):
        Template(plugins=(Readme(destination="LICENSE"),)).render("demo")


def test_tests_plugin_coverage() -> None:
    files = _files(Template(plugins=(Tests(fail_under=90.0, project=True),)))
    pyproject = tomlkit.parse(files["pyproject.toml"])
    assert pyproject["dependency-groups"]["test"] == ["pytest>=8", "pytest-cov>=5"]
    assert pyproject["tool"]["coverage"]["report"]["fail_under"] == 90.0
    assert pyproject["tool"]["pytest"]["ini_options"]["addopts"] == "--cov=my_pkg"


def test_formatter_blue_uses_single_quotes() -> None:
    files = _files(Template(plugins=(Formatter(style="blue", indent=2, line_length=79),)))
    ruff = tomlkit.parse(files["pyproject.toml"])["tool"]["ruff"]
    assert ruff["indent-width"] == 2
    assert ruff["line-length"] == 79
    assert ruff["format"]["quote-style"] == "single"


def test_formatter_rejects_unknown_style() -> None:
    with pytest.raises(PackageGenerationError, match="formatter style"):
        Template(plugins=(Formatter(style="yas"),)).render("demo")


def test_github_actions_workflow() -> None:
    files = _files(Template(user="jane", plugins=(GitHubActions(osx=True, coverage=False),)))
    workflow = yaml.safe_load(files[".github/workflows/CI.yml"])
    matrix = workflow["jobs"]["test"]["strategy"]["matrix"]
    assert matrix["os"] == ["ubuntu-latest", "macos-latest"]
    assert matrix["python-version"] == ["3.11", "3.12"]
    assert workflow["jobs"]["test"]["steps"][-1] == {"run": "python -m pytest"}
    assert "actions/workflows/CI.yml/badge.svg" in files["README.md"]


def test_github_actions_needs_a_runner() -> None:
    with pytest.raises(PackageGenerationError, match="at least one"):
        Template(plugins=(GitHubActions(linux=False),)).render("demo")


def test_badges_inline() -> None:
    plugins = (GitHubActions(), Codecov(), Readme(inline_badges=True))
    template = Template(user="jane", plugins=plugins)
    readme = _files(template)["README.md"]
    badge_line = next(line for line in readme.splitlines() if line.startswith("[!["))
    assert "codecov.io/gh/jane/my-pkg" in badge_line
    assert "actions/workflows" in badge_line


def test_git_ignore_patterns() -> None:
    gitignore = _files(Template(plugins=(Git(ignore=["*.log"], manifest=True),)))[".gitignore"]
    lines = gitignore.splitlines()
    assert "*.log" in lines
    assert "uv.lock" not in lines


def test_documenter_and_dependabot() -> None:
    files = _files(Template(plugins=(Documenter(site_name="Docs"), Dependabot())))
    assert yaml.safe_load(files["mkdocs.yml"])["site_name"] == "Docs"
    assert files["docs/index.md"] == "# Docs\n"
    updates = yaml.safe_load(files[".github/dependabot.yml"])["updates"]
    assert [u["package-ecosystem"] for u in updates] == ["pip", "github-actions"]
    extras = tomlkit.parse(files["pyproject.toml"])["project"]["optional-dependencies"]
    assert extras["docs"] == ["mkdocs>=1.5", "mkdocs-material>=9"]


def test_describe_plugin_reports_fields() -> None:
    schema = describe_plugin(GitHubActions)
    assert schema.name == "GitHubActions"
    by_name = {f.name: f for f in schema.fields}
    assert by_name["python_versions"].tag == "list[str]"
    assert by_name["python_versions"].default == ["3.11", "3.12"]
    assert by_name["destination"].help == "Workflow file name."


@dataclass(frozen=True)
class Undeclared(Plugin):
    items: list[str] = field(default_factory=list)


def test_describe_plugin_requires_option_fields() -> None:
    with pytest.raises(RegistryError, match="Undeclared.items"):
        describe_plugin(Undeclared)
