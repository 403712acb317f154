"""Jinja2 template rendering for scaffolded files.

Provides the TemplateRenderer class, the placeholder-substitution collaborator
used by the mutation primitives.  The engine only hands it text (or a file)
plus a context mapping and writes back whatever comes out; no templating
logic lives in the executor itself.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from recipekit.params import Params

TEMPLATE_SUFFIX = ".j2"

# Lower-to-upper boundaries, acronym boundaries and any non-alphanumeric run.
_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Jinja2 environment over the copy-source search path.

    A project-level template shadows a bundled one with the same relative
    name.  Output is never HTML-escaped: payloads are config files and code.
    """

    def __init__(self, search_paths: list[Path] | None = None) -> None:
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self.env = Environment(
            loader=FileSystemLoader([str(p) for p in self.search_paths]),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(FILTERS)

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render *template_path*, relative to one of the search roots."""
        return self.env.get_template(template_path).render(context)

    def render_string(self, source: str, context: dict[str, Any]) -> str:
        return self.env.from_string(source).render(context)

    def render_file(self, path: Path, context: dict[str, Any]) -> str:
        """Render a file already resolved on disk (it need not be on the search path)."""
        return self.render_string(path.read_text(encoding="utf-8"), context)


def build_context(project_name: str, params: Params) -> dict[str, Any]:
    """Build the template context handed to every rendered payload.

    Parameters are exposed both as ``params`` and as top-level names; the
    built-in keys take precedence over a parameter of the same name.
    """
    return {
        **params.as_dict(),
        "params": params,
        "project_name": project_name,
        "project_name_slug": slugify(project_name),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def strip_template_suffix(name: str) -> str:
    """``"Dockerfile.j2"`` -> ``"Dockerfile"``; other names are returned unchanged."""
    return name.removesuffix(TEMPLATE_SUFFIX)


# ---------------------------------------------------------------------------
# Case filters
# ---------------------------------------------------------------------------

def _words(value: str) -> list[str]:
    return _WORD_RE.findall(value)


def slugify(value: str) -> str:
    """``"My Cool API"`` -> ``"my-cool-api"``."""
    return "-".join(w.lower() for w in _words(value))


def pascal_case(value: str) -> str:
    """``"my-api_app"`` -> ``"MyApiApp"``."""
    return "".join(w.capitalize() for w in _words(value))


def snake_case(value: str) -> str:
    """``"MyApiApp"`` or ``"my-api"`` -> ``"my_api_app"`` / ``"my_api"``."""
    return "_".join(w.lower() for w in _words(value))


def camel_case(value: str) -> str:
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


FILTERS = {
    "slugify": slugify,
    "pascal_case": pascal_case,
    "snake_case": snake_case,
    "camel_case": camel_case,
}
