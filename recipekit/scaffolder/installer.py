"""Install/build driver.

Runs after the whole recipe tree has completed:

1. Finalize the dependency registry (no further registrations are accepted).
2. Write the dependency manifest for the configured ecosystem.
3. Invoke the package installer in the project root.
4. Run ``run_shell`` steps deferred with ``stage: after_install``.
5. Run the optional formatter pass.

A failing installer is fatal and leaves the generated tree on disk.  A failing
formatter only produces a warning.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path

from recipekit.config import InstallConfig
from recipekit.errors import CommandFailedError, InstallFailedError
from recipekit.registry import Dependency, DependencyRegistry
from recipekit.utils import format_command, print_status, print_warning, run_command

from .operations import RunShellCommand

DEFAULT_INSTALL_COMMANDS: dict[str, list[str]] = {
    "bundler": ["bundle", "install"],
    "pip": ["pip", "install", "-r", "requirements.txt"],
}

DEFAULT_FORMAT_COMMANDS: dict[str, list[str]] = {
    "bundler": ["bundle", "exec", "rubocop", "-A"],
    "pip": ["ruff", "format", "."],
}


@dataclass
class InstallResult:
    """What the install driver did."""

    dependencies: list[Dependency] = field(default_factory=list)
    manifests: list[Path] = field(default_factory=list)
    installed: bool = False
    deferred_run: int = 0
    formatted: bool = False


# ---------------------------------------------------------------------------
# Manifest writers
# ---------------------------------------------------------------------------


def write_gemfile(root: Path, deps: list[Dependency]) -> list[Path]:
    """Append ``gem`` declarations to ``Gemfile``.

    Runtime gems are appended at top level; other groups go in a
    ``group :<name> do ... end`` block.  Gems the Gemfile already declares are
    left alone so re-running against an existing project adds nothing twice.
    """
    gemfile = root / "Gemfile"
    existing = gemfile.read_text(encoding="utf-8") if gemfile.exists() else ""
    pending = [d for d in deps if not _gem_declared(existing, d.name)]
    if not pending:
        return []

    lines: list[str] = []
    if not existing:
        lines.append('source "https://rubygems.org"\n')
    runtime = [d for d in pending if d.group == "runtime"]
    for dep in runtime:
        lines.append(_gem_line(dep))

    groups: dict[str, list[Dependency]] = {}
    for dep in pending:
        if dep.group != "runtime":
            groups.setdefault(dep.group, []).append(dep)
    for group, members in groups.items():
        labels = ", ".join(f":{g.strip()}" for g in group.split(","))
        lines.append(f"\ngroup {labels} do")
        lines.extend(f"  {_gem_line(d)}" for d in members)
        lines.append("end")

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    gemfile.write_text(existing + prefix + "\n".join(lines) + "\n", encoding="utf-8")
    return [gemfile]


def write_requirements(root: Path, deps: list[Dependency]) -> list[Path]:
    """Write ``requirements.txt`` (runtime) and ``requirements-<group>.txt`` files."""
    by_file: dict[str, list[str]] = {}
    for dep in deps:
        filename = "requirements.txt" if dep.group == "runtime" else f"requirements-{dep.group}.txt"
        by_file.setdefault(filename, []).append(_pip_requirement(dep))

    written: list[Path] = []
    for filename, reqs in by_file.items():
        path = root / filename
        existing = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
        names = {_requirement_name(line) for line in existing if line.strip()}
        new = [r for r in reqs if _requirement_name(r) not in names]
        if not new:
            continue
        path.write_text("\n".join(existing + new) + "\n", encoding="utf-8")
        written.append(path)
    return written


MANIFEST_WRITERS = {
    "bundler": write_gemfile,
    "pip": write_requirements,
}


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


class InstallDriver:
    """Hands finalized dependencies to the ecosystem's installer."""

    def __init__(self, config: InstallConfig | None = None, *, quiet: bool = False) -> None:
        self.config = config or InstallConfig()
        self.quiet = quiet

    @property
    def install_command(self) -> list[str]:
        return self.config.install_command or DEFAULT_INSTALL_COMMANDS[self.config.ecosystem]

    @property
    def format_command(self) -> list[str] | None:
        if not self.config.run_formatter:
            return None
        if self.config.format_command is not None:
            return self.config.format_command or None
        return DEFAULT_FORMAT_COMMANDS.get(self.config.ecosystem)

    async def run(
        self,
        root: Path,
        registry: DependencyRegistry,
        deferred: list[RunShellCommand] | None = None,
        *,
        shell_timeout: int = 300,
    ) -> InstallResult:
        """Finalize the registry, write the manifest and install.

        Raises:
            InstallFailedError: If the installer exits non-zero or times out.
            CommandFailedError: If a deferred command exits non-zero.
        """
        result = InstallResult(dependencies=registry.finalize())
        writer = MANIFEST_WRITERS[self.config.ecosystem]
        result.manifests = await asyncio.to_thread(writer, root, result.dependencies)
        for manifest in result.manifests:
            print_status("package", f"{manifest.name} ({len(result.dependencies)} dependencies)",
                         quiet=self.quiet)

        if self.config.skip_install:
            print_status("skip", "install (skip_install)", quiet=self.quiet)
            return result

        cmd = self.install_command
        print_status("run", format_command(cmd), quiet=self.quiet)
        returncode, _stdout, stderr = await run_command(cmd, cwd=root, timeout=self.config.timeout)
        if returncode != 0:
            raise InstallFailedError(format_command(cmd), returncode, stderr)
        result.installed = True

        for op in deferred or []:
            display = format_command(op.command)
            print_status("run", display, quiet=self.quiet)
            rc, _out, err = await run_command(op.command, cwd=root, timeout=shell_timeout)
            if rc != 0:
                raise CommandFailedError(display, rc, err)
            result.deferred_run += 1

        fmt = self.format_command
        if fmt:
            print_status("run", format_command(fmt), quiet=self.quiet)
            rc, _out, err = await run_command(fmt, cwd=root, timeout=self.config.timeout)
            if rc != 0:
                print_warning(f"Formatter exited with {rc}: {err or format_command(fmt)}")
            else:
                result.formatted = True

        return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _gem_declared(gemfile: str, name: str) -> bool:
    return re.search(rf"^\s*gem\s+[\"']{re.escape(name)}[\"']", gemfile, re.MULTILINE) is not None


def _gem_line(dep: Dependency) -> str:
    if dep.constraint:
        return f'gem "{dep.name}", "{dep.constraint}"'
    return f'gem "{dep.name}"'


def _pip_requirement(dep: Dependency) -> str:
    constraint = dep.constraint.strip()
    if not constraint:
        return dep.name
    if constraint[0] in "<>=!~":
        return f"{dep.name}{constraint}"
    return f"{dep.name}=={constraint}"


def _requirement_name(line: str) -> str:
    return re.split(r"[<>=!~\s\[;]", line.strip(), maxsplit=1)[0].lower()
