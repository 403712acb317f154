"""Dependency registry.

Collects package declarations made by recipes and hands the deduplicated list
to the install driver.  Once :meth:`DependencyRegistry.finalize` has been
called the registry is read-only, so a declaration arriving after the install
step has started fails loudly instead of silently producing a broken project.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from recipekit.errors import DuplicateDependencyError, RegistryClosedError


class Dependency(BaseModel):
    """A single package declaration."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    constraint: str = Field(default="", description="Version constraint, empty for any")
    group: str = Field(default="runtime", description="Install group (runtime, development, test, ...)")

    def describe(self) -> str:
        """Return a short human-readable form, e.g. ``pagy ~> 9.0 [runtime]``."""
        version = f" {self.constraint}" if self.constraint else ""
        return f"{self.name}{version} [{self.group}]"


class DependencyRegistry:
    """Accumulates :class:`Dependency` declarations in registration order."""

    def __init__(self) -> None:
        self._entries: dict[str, Dependency] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def register(self, name: str, constraint: str = "", group: str = "runtime") -> Dependency:
        """Record a dependency declaration.

        Re-registering an identical declaration is a no-op.

        Raises:
            RegistryClosedError: If :meth:`finalize` was already called.
            DuplicateDependencyError: If *name* is already registered with a
                different constraint or group.
        """
        if self._closed:
            raise RegistryClosedError(name)

        dep = Dependency(name=name, constraint=constraint, group=group)
        existing = self._entries.get(name)
        if existing is None:
            self._entries[name] = dep
            return dep
        if existing != dep:
            raise DuplicateDependencyError(name, existing.describe(), dep.describe())
        return existing

    def pending(self) -> list[Dependency]:
        """Return a snapshot of the current declarations without closing."""
        return list(self._entries.values())

    def finalize(self) -> list[Dependency]:
        """Close the registry and return the ordered dependency list."""
        self._closed = True
        return list(self._entries.values())
