"""Filesystem mutation primitives.

The :class:`Workspace` wraps a target project root and exposes one method per
primitive.  Each method either changes the tree in an observable way or raises
a :class:`~recipekit.errors.ScaffoldError` subclass, and every method can be
called twice in a row: ``remove_file`` on a missing path is a no-op, and the
create/copy family refuse or overwrite according to the ``overwrite`` flag
instead of failing halfway.

All paths given to the primitives are relative to the project root.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Any

import yaml

from recipekit.config import SCOPES
from recipekit.errors import (
    AlreadyExistsError,
    MarkerNotFoundError,
    ScaffoldError,
    SourceNotFoundError,
)
from recipekit.utils import print_status

from .templates import TEMPLATE_SUFFIX, TemplateRenderer, strip_template_suffix


class Workspace:
    """Mutation primitives bound to a project root.

    Attributes:
        root: The target project directory.
        search_paths: Roots used to resolve copy sources, highest priority first.
        scope_files: Mapping of environment scope to its configuration surface.
        renderer: Templating collaborator used for ``.j2`` sources.
        context: Variables handed to the renderer.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        search_paths: list[Path] | None = None,
        scope_files: dict[str, str] | None = None,
        renderer: TemplateRenderer | None = None,
        context: dict[str, Any] | None = None,
        quiet: bool = False,
    ) -> None:
        self.root = Path(root)
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self.scope_files = scope_files or {s: f"config/environments/{s}.conf" for s in SCOPES}
        self.renderer = renderer or TemplateRenderer(self.search_paths)
        self.context = context or {}
        self.quiet = quiet

    # -- Path handling -----------------------------------------------------

    def path(self, relative: str | Path) -> Path:
        """Resolve *relative* against the root, refusing paths that escape it."""
        root = self.root.resolve()
        target = (root / relative).resolve()
        if target != root and root not in target.parents:
            raise ScaffoldError(f"Path escapes project root: {relative}")
        return target

    def resolve_source(self, source: str) -> Path:
        """Find *source* on the search path.

        An absolute *source* is used as-is when it exists.

        Raises:
            SourceNotFoundError: If no search root contains *source*.
        """
        candidate = Path(source)
        if candidate.is_absolute():
            if candidate.exists():
                return candidate
            raise SourceNotFoundError(source, self.search_paths)
        for base in self.search_paths:
            found = base / source
            if found.exists():
                return found
        raise SourceNotFoundError(source, self.search_paths)

    def _status(self, verb: str, message: str) -> None:
        print_status(verb, message, quiet=self.quiet)

    # -- Primitives --------------------------------------------------------

    def create_file(
        self,
        path: str,
        content: str,
        *,
        overwrite: bool = False,
        mode: int | None = None,
    ) -> Path:
        """Write *content* to *path*.

        Raises:
            AlreadyExistsError: If the file exists and *overwrite* is false.
        """
        target = self.path(path)
        existed = target.exists()
        if existed and not overwrite:
            raise AlreadyExistsError(path)
        _write(target, content)
        if mode is not None:
            target.chmod(mode)
        self._status("force" if existed else "create", path)
        return target

    def remove_file(self, path: str) -> bool:
        """Remove a file or directory tree.

        Returns:
            ``True`` if something was removed, ``False`` if *path* did not exist.
        """
        target = self.path(path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            return False
        self._status("remove", path)
        return True

    def copy_file(
        self,
        source: str,
        dest: str | None = None,
        *,
        overwrite: bool = True,
        render: bool | None = None,
        mode: int | None = None,
    ) -> Path:
        """Copy a file from the search path into the project.

        ``.j2`` sources are rendered and the suffix dropped from the default
        destination name.

        Raises:
            SourceNotFoundError: If *source* cannot be resolved.
            AlreadyExistsError: If the destination exists and *overwrite* is false.
        """
        src = self.resolve_source(source)
        if src.is_dir():
            raise ScaffoldError(f"copy_file source is a directory: {source}")
        if render is None:
            render = src.name.endswith(TEMPLATE_SUFFIX)
        dest_rel = dest or (strip_template_suffix(source) if render else source)
        target = self.path(dest_rel)
        if target.exists() and not overwrite:
            raise AlreadyExistsError(dest_rel)

        if render:
            _write(target, self.renderer.render_file(src, self.context))
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, target)
        if mode is not None:
            target.chmod(mode)
        self._status("copy", dest_rel)
        return target

    def copy_directory(
        self,
        source: str,
        dest: str | None = None,
        *,
        overwrite: bool = True,
    ) -> list[Path]:
        """Recursively copy a directory from the search path into the project.

        Files ending in ``.j2`` are rendered and written without the suffix.
        Existing destination directories are merged into.

        Returns:
            The written file paths, in sorted source order.
        """
        src = self.resolve_source(source)
        if not src.is_dir():
            raise ScaffoldError(f"copy_directory source is not a directory: {source}")
        dest_rel = Path(dest or source)
        base = self.path(dest_rel)

        written: list[Path] = []
        for item in sorted(src.rglob("*")):
            if item.is_dir():
                continue
            rel = item.relative_to(src)
            render = item.name.endswith(TEMPLATE_SUFFIX)
            out = base / (strip_template_suffix(str(rel)) if render else rel)
            if out.exists() and not overwrite:
                raise AlreadyExistsError(dest_rel / rel)
            if render:
                _write(out, self.renderer.render_file(item, self.context))
            else:
                out.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(item, out)
            written.append(out)
        base.mkdir(parents=True, exist_ok=True)
        self._status("directory", str(dest_rel))
        return written

    def inject_after_marker(self, path: str, marker: str, text: str) -> Path:
        """Insert *text* right after the first occurrence of *marker*.

        Nothing is written when the file already contains *text*, so
        re-running a recipe leaves the file as it is.

        Raises:
            MarkerNotFoundError: If *marker* is absent; the file is not touched.
        """
        target = self.path(path)
        if not target.is_file():
            raise ScaffoldError(f"Cannot inject into missing file: {path}")
        content = target.read_text(encoding="utf-8")
        idx = content.find(marker)
        if idx == -1:
            raise MarkerNotFoundError(path, marker)
        if text in content:
            self._status("identical", path)
            return target
        end = idx + len(marker)
        target.write_text(content[:end] + text + content[end:], encoding="utf-8")
        self._status("inject", path)
        return target

    def append_config_block(self, scope: str, text: str) -> Path:
        """Append *text* to the configuration surface of *scope*.

        The surface file is created if it does not exist yet.  A block
        already present on the surface as whole lines is not appended again.
        """
        if scope not in self.scope_files:
            raise ScaffoldError(f"Unknown configuration scope: {scope}")
        rel = self.scope_files[scope]
        target = self.path(rel)
        existing = target.read_text(encoding="utf-8") if target.exists() else ""
        block = text if text.endswith("\n") else text + "\n"
        if "\n" + block in "\n" + existing:
            self._status("identical", f"{rel} [{scope}]")
            return target
        if existing and not existing.endswith("\n"):
            block = "\n" + block
        _write(target, existing + block)
        self._status("append", f"{rel} [{scope}]")
        return target

    def replace_in_file(
        self, path: str, pattern: str, replacement: str, *, required: bool = True
    ) -> int:
        """Regex-substitute *pattern* with *replacement* across the file.

        Returns:
            The number of substitutions made.

        Raises:
            MarkerNotFoundError: If *pattern* does not match anywhere and
                *required* is true; with *required* false the file is untouched.
        """
        target = self.path(path)
        if not target.is_file():
            raise ScaffoldError(f"Cannot replace in missing file: {path}")
        content = target.read_text(encoding="utf-8")
        new_content, count = re.subn(pattern, replacement, content, flags=re.MULTILINE)
        if count == 0:
            if not required:
                self._status("skip", f"{path} (no match for {pattern!r})")
                return 0
            raise MarkerNotFoundError(path, pattern)
        target.write_text(new_content, encoding="utf-8")
        self._status("gsub", path)
        return count

    def update_yaml(self, path: str, data: dict[str, Any]) -> Path:
        """Merge top-level keys of *data* into the YAML mapping at *path*."""
        target = self.path(path)
        current: Any = {}
        if target.exists():
            current = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
        if not isinstance(current, dict):
            raise ScaffoldError(f"YAML file is not a mapping: {path}")
        current.update(data)
        _write(target, yaml.safe_dump(current, sort_keys=False, default_flow_style=False))
        self._status("yaml", path)
        return target

    def chmod(self, path: str, mode: int) -> Path:
        target = self.path(path)
        if not target.exists():
            raise ScaffoldError(f"Cannot chmod missing path: {path}")
        target.chmod(mode)
        self._status("chmod", f"{path} ({mode:o})")
        return target


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write(path: Path, content: str) -> None:
    """Create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
