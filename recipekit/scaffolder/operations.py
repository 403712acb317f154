"""Typed mutation operations.

Each recipe step is one of the models below, selected by its ``op`` key.
Validation happens once when the recipe is loaded; the executor only ever
sees well-formed operations.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from recipekit.config import SCOPES


class BaseOperation(BaseModel):
    """Fields shared by every operation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    if_param: str | None = Field(
        default=None, description="Only apply when this parameter is set and truthy"
    )
    unless_param: str | None = Field(
        default=None, description="Skip when this parameter is set and truthy"
    )

    def describe(self) -> str:
        """Short label used in status output and error messages."""
        return self.op  # type: ignore[attr-defined]


class CreateFile(BaseOperation):
    op: Literal["create_file"] = "create_file"
    path: str
    content: str = ""
    overwrite: bool = False
    render: bool = False
    mode: int | None = None

    def describe(self) -> str:
        return f"create_file {self.path}"


class RemoveFile(BaseOperation):
    op: Literal["remove_file"] = "remove_file"
    path: str

    def describe(self) -> str:
        return f"remove_file {self.path}"


class CopyFile(BaseOperation):
    op: Literal["copy_file"] = "copy_file"
    source: str
    dest: str | None = Field(default=None, description="Defaults to the source name")
    overwrite: bool = True
    render: bool | None = Field(
        default=None, description="Render through Jinja2; defaults to True for .j2 sources"
    )
    mode: int | None = None

    def describe(self) -> str:
        return f"copy_file {self.source}"


class CopyDirectory(BaseOperation):
    op: Literal["copy_directory"] = "copy_directory"
    source: str
    dest: str | None = None
    overwrite: bool = True

    def describe(self) -> str:
        return f"copy_directory {self.source}"


class InjectAfterMarker(BaseOperation):
    op: Literal["inject_after_marker"] = "inject_after_marker"
    path: str
    marker: str = Field(..., min_length=1)
    text: str
    render: bool = False

    def describe(self) -> str:
        return f"inject_after_marker {self.path}"


class AppendConfigBlock(BaseOperation):
    op: Literal["append_config_block"] = "append_config_block"
    scope: str = "all"
    text: str
    render: bool = False

    @field_validator("scope")
    @classmethod
    def _known_scope(cls, value: str) -> str:
        if value not in SCOPES:
            raise ValueError(f"Unknown scope {value!r}; expected one of {', '.join(SCOPES)}")
        return value

    def describe(self) -> str:
        return f"append_config_block [{self.scope}]"


class RegisterDependency(BaseOperation):
    op: Literal["register_dependency"] = "register_dependency"
    name: str = Field(..., min_length=1)
    constraint: str = ""
    group: str = "runtime"

    def describe(self) -> str:
        return f"register_dependency {self.name}"


class RunShellCommand(BaseOperation):
    op: Literal["run_shell"] = "run_shell"
    command: str | list[str]
    stage: Literal["now", "after_install"] = "now"

    def describe(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"run_shell {cmd}"


class InvokeRecipe(BaseOperation):
    op: Literal["recipe"] = "recipe"
    name: str = Field(..., min_length=1)

    def describe(self) -> str:
        return f"recipe {self.name}"


class ReplaceInFile(BaseOperation):
    op: Literal["replace_in_file"] = "replace_in_file"
    path: str
    pattern: str
    replacement: str
    render: bool = False
    required: bool = Field(default=True, description="Fail when the pattern does not match")

    def describe(self) -> str:
        return f"replace_in_file {self.path}"


class UpdateYaml(BaseOperation):
    op: Literal["update_yaml"] = "update_yaml"
    path: str
    data: dict[str, Any]

    def describe(self) -> str:
        return f"update_yaml {self.path}"


class Chmod(BaseOperation):
    op: Literal["chmod"] = "chmod"
    path: str
    mode: int

    def describe(self) -> str:
        return f"chmod {self.path}"


class Say(BaseOperation):
    op: Literal["say"] = "say"
    message: str
    render: bool = False


Operation = Annotated[
    Union[
        CreateFile,
        RemoveFile,
        CopyFile,
        CopyDirectory,
        InjectAfterMarker,
        AppendConfigBlock,
        RegisterDependency,
        RunShellCommand,
        InvokeRecipe,
        ReplaceInFile,
        UpdateYaml,
        Chmod,
        Say,
    ],
    Field(discriminator="op"),
]

OPERATION_ADAPTER: TypeAdapter[Operation] = TypeAdapter(Operation)


def parse_operation(data: dict[str, Any]) -> Operation:
    """Validate a raw mapping into the matching operation model."""
    return OPERATION_ADAPTER.validate_python(data)
