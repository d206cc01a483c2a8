from __future__ import annotations

import keyword
import logging
import re
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from pkgforge.errors import PackageGenerationError
from pkgforge.plugins import Plugin, RenderContext, RenderedFile
from pkgforge.registry import DEFAULT_PLUGINS

logger = logging.getLogger(__name__)

# PEP 508 project names.
_PROJECT_NAME_RE = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)


def module_name_for(package_name: str) -> str:
    return canonicalize_name(package_name).replace("-", "_")


def _validate_package_name(name: str) -> str:
    if not _PROJECT_NAME_RE.match(name):
        raise PackageGenerationError(
            f"Invalid package name {name!r}: use letters, digits, '-', '_' or '.', "
            "starting and ending with a letter or digit."
        )
    module_name = module_name_for(name)
    if not module_name.isidentifier() or keyword.iskeyword(module_name):
        raise PackageGenerationError(
            f"Package name {name!r} does not map to an importable module name ({module_name!r})."
        )
    return module_name


def _validate_python_version(value: str) -> str:
    try:
        version = Version(value)
    except InvalidVersion as e:
        raise PackageGenerationError(f"Invalid Python version {value!r}: {e}") from e
    if version.major != 3:
        raise PackageGenerationError(f"Unsupported Python version {value!r} (expected 3.x).")
    return f"{version.major}.{version.minor}"


def _write_files(
    rendered: Sequence[RenderedFile], files: Sequence[Path], package_dir: Path
) -> None:
    try:
        for item, path in zip(rendered, files):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(item.content, encoding="utf-8", newline="\n")
            logger.debug("Wrote %s", path)
    except OSError as e:
        raise PackageGenerationError(f"Failed to write package files in {package_dir}: {e}") from e


@dataclass(frozen=True)
class GenerationResult:
    package_dir: Path
    files: tuple[Path, ...]
    dry_run: bool


@dataclass(frozen=True)
class Template:
    """Package template: user info plus the plugins that shape the output.

    Plugins in ``plugins`` replace the default plugin of the same class; any
    other plugin is added after the defaults.
    """

    user: str = ""
    authors: tuple[str, ...] = ()
    python_version: str = "3.12"
    output_dir: Path = field(default_factory=Path.cwd)
    plugins: Sequence[Plugin] = ()

    def resolved_plugins(self) -> tuple[Plugin, ...]:
        supplied: dict[type[Plugin], Plugin] = {}
        for plugin in self.plugins:
            supplied[type(plugin)] = plugin
        resolved = [supplied.pop(cls, None) or cls() for cls in DEFAULT_PLUGINS]
        resolved.extend(supplied.values())
        return tuple(resolved)

    def _base_pyproject(self, name: str, python_version: str) -> dict[str, Any]:
        project: dict[str, Any] = {
            "name": name,
            "requires-python": f">={python_version}",
            "dependencies": [],
        }
        authors = []
        for author in self.authors:
            author_name, _, rest = author.partition("<")
            entry = {"name": author_name.strip()}
            email = rest.rstrip(">").strip()
            if email:
                entry["email"] = email
            authors.append(entry)
        if authors:
            project["authors"] = authors
        if self.user:
            project["urls"] = {"Repository": f"https://github.com/{self.user}/{name}"}
        return {"project": project}

    def render(self, name: str) -> tuple[RenderContext, list[RenderedFile]]:
        module_name = _validate_package_name(name)
        python_version = _validate_python_version(self.python_version)
        plugins = self.resolved_plugins()
        ctx = RenderContext(
            package_name=name,
            module_name=module_name,
            user=self.user,
            authors=tuple(self.authors),
            python_version=python_version,
            year=date.today().year,
            plugins=plugins,
            pyproject=self._base_pyproject(name, python_version),
        )
        for plugin in plugins:
            plugin.update_pyproject(ctx.pyproject, ctx)

        rendered: list[RenderedFile] = []
        owners: dict[str, str] = {}
        for plugin in plugins:
            for item in plugin.render(ctx):
                owner = owners.get(item.path)
                if owner is not None:
                    raise PackageGenerationError(
                        f"Plugins {owner} and {type(plugin).__name__} both write {item.path}."
                    )
                owners[item.path] = type(plugin).__name__
                rendered.append(item)
        return ctx, rendered

    def generate(self, name: str, *, dry_run: bool = False) -> GenerationResult:
        package_dir = Path(self.output_dir) / name
        if package_dir.exists():
            raise PackageGenerationError(f"Destination already exists: {package_dir}")

        ctx, rendered = self.render(name)
        files = tuple(package_dir / item.path for item in rendered)
        if dry_run:
            for path in files:
                logger.info("Would write %s", path)
            return GenerationResult(package_dir=package_dir, files=files, dry_run=True)

        logger.debug("Generating %s in %s", name, package_dir)
        try:
            _write_files(rendered, files, package_dir)
            for plugin in ctx.plugins:
                plugin.post_generate(package_dir, ctx)
        except Exception:
            # A failed generation leaves no package directory behind.
            logger.debug("Removing partially generated %s", package_dir)
            shutil.rmtree(package_dir, ignore_errors=True)
            raise
        return GenerationResult(package_dir=package_dir, files=files, dry_run=False)
