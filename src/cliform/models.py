"""Canonical Pydantic models shared across all cliform modules.

This is the single source of truth for data shapes in the project. The
models fall into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CompletionConfig`, :class:`OutputConfig`, :class:`GlobalConfig`.

**Schema output models** -- produced by :mod:`cliform.schema.extractor` from a
command's pydantic argument model and consumed by the Typer generator and
the completion extractor:
    :class:`FieldType`, :class:`CompletionHint`, :class:`ResolvedField`.

**Completion model** -- the shell-agnostic description of what can be
completed, built once per command tree:
    :class:`ValueCompletion` variants, :class:`CompletableOption`,
    :class:`CompletablePositional`, :class:`CompletableSubcommand`,
    :class:`OpaqueSubcommand`, :class:`CompletionData`,
    :class:`CompletionResult`.

**Dynamic completion models** -- per-request values of the ``__complete``
protocol:
    :class:`CompletionDirective`, :class:`CompletionType`,
    :class:`CandidateKind`, :class:`CompletionCandidate`,
    :class:`CandidateResult`.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Config ---


class CompletionConfig(BaseModel):
    """Completion behaviour shared by the static and dynamic generators."""

    shell_command_timeout: float = Field(
        default=3.0,
        gt=0,
        description="Seconds a shell-command completion may run before it is abandoned",
    )
    include_descriptions: bool = Field(
        default=True,
        description="Show option and sub-command descriptions next to candidates",
    )


class OutputConfig(BaseModel):
    """Output formatting preferences."""

    format: str = Field(default="auto", description="auto, json, plain, or rich")


class GlobalConfig(BaseModel):
    """Top-level configuration stored in ``<config_dir>/config.json``."""

    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Schema output ---


class FieldType(str, enum.Enum):
    """Normalized value type of a command argument."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    UNKNOWN = "unknown"


class CompletionHint(BaseModel):
    """Completion metadata an author attaches to a field via :class:`~cliform.schema.Arg`.

    ``choices`` and ``shell_command`` are custom sources and win over
    ``type``. ``type`` selects file, directory, or no completion; the
    ``extensions`` and ``matchers`` filters only apply to ``file``.
    """

    model_config = ConfigDict(frozen=True)

    type: Optional[Literal["file", "directory", "none"]] = None
    extensions: tuple[str, ...] = ()
    matchers: tuple[str, ...] = ()
    choices: tuple[str, ...] = ()
    shell_command: Optional[str] = None


class ResolvedField(BaseModel):
    """A single command argument normalized from a pydantic model field.

    Example::

        ResolvedField(
            name="env",
            cli_name="env",
            alias="e",
            type=FieldType.STRING,
            enum_values=["dev", "staging", "prod"],
            required=True,
        )
    """

    name: str
    cli_name: str
    alias: Optional[str] = None
    description: Optional[str] = None
    positional: bool = False
    required: bool = False
    type: FieldType = FieldType.STRING
    enum_values: list[str] = Field(default_factory=list)
    completion: Optional[CompletionHint] = None
    default: Any = None
    placeholder: Optional[str] = None


# --- Completion model ---


class ChoicesCompletion(BaseModel):
    """Complete from a fixed list of values, in declared order."""

    type: Literal["choices"] = "choices"
    values: list[str]


class FileCompletion(BaseModel):
    """Complete file paths, optionally filtered by extension or glob pattern."""

    type: Literal["file"] = "file"
    extensions: list[str] = Field(default_factory=list)
    matchers: list[str] = Field(default_factory=list)

    @property
    def is_filtered(self) -> bool:
        return bool(self.extensions or self.matchers)


class DirectoryCompletion(BaseModel):
    """Complete directory paths only."""

    type: Literal["directory"] = "directory"


class ShellCommandCompletion(BaseModel):
    """Complete from the output lines of a shell command."""

    type: Literal["shell_command"] = "shell_command"
    command: str


class NoCompletion(BaseModel):
    """Offer nothing and suppress the shell's fallback file completion."""

    type: Literal["none"] = "none"


ValueCompletion = Annotated[
    Union[
        ChoicesCompletion,
        FileCompletion,
        DirectoryCompletion,
        ShellCommandCompletion,
        NoCompletion,
    ],
    Field(discriminator="type"),
]


class CompletableOption(BaseModel):
    """A ``--flag`` a user may type, as seen by the completion engine."""

    name: str
    cli_name: str
    alias: Optional[str] = None
    description: Optional[str] = None
    takes_value: bool = True
    value_type: FieldType = FieldType.STRING
    required: bool = False
    value_completion: Optional[ValueCompletion] = None

    @property
    def spellings(self) -> list[str]:
        """``--cli-name`` followed by ``-a`` when an alias exists."""
        result = [f"--{self.cli_name}"]
        if self.alias:
            result.append(f"-{self.alias}")
        return result

    @property
    def repeatable(self) -> bool:
        return self.value_type == FieldType.ARRAY


class CompletablePositional(BaseModel):
    """A positional argument slot."""

    name: str
    cli_name: str
    position: int
    description: Optional[str] = None
    required: bool = False
    variadic: bool = False
    value_completion: Optional[ValueCompletion] = None


class OpaqueSubcommand(BaseModel):
    """Placeholder for a child whose definition is only known after loading it."""

    kind: Literal["opaque"] = "opaque"
    name: str
    description: Optional[str] = "(lazy loaded)"


class CompletableSubcommand(BaseModel):
    """One node of the completable command tree."""

    kind: Literal["command"] = "command"
    name: str
    description: Optional[str] = None
    options: list[CompletableOption] = Field(default_factory=list)
    positionals: list[CompletablePositional] = Field(default_factory=list)
    subcommands: list[
        Annotated[
            Union[CompletableSubcommand, OpaqueSubcommand],
            Field(discriminator="kind"),
        ]
    ] = Field(default_factory=list)

    def find_option(self, flag: str) -> Optional[CompletableOption]:
        """Look up an option by ``--long``, ``-s`` or ``--long=value`` spelling."""
        spelling = flag.split("=", 1)[0]
        for option in self.options:
            if spelling in option.spellings:
                return option
        return None


CompletableSubcommand.model_rebuild()


class CompletionData(BaseModel):
    """Everything a static generator needs to render one script."""

    command: CompletableSubcommand
    program_name: str
    global_options: list[CompletableOption] = Field(default_factory=list)


class ShellType(str, enum.Enum):
    """Shells cliform can generate completion for."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


class CompletionResult(BaseModel):
    """A generated completion script plus how to install it."""

    script: str
    shell: ShellType
    install_instructions: str


# --- Dynamic completion ---


class CompletionDirective(enum.Flag):
    """Capabilities a completion response asks the shell stub to apply.

    Combine members with ``|``; the integer form only exists on the wire
    (see :meth:`to_wire` and :meth:`from_wire`).
    """

    DEFAULT = 0
    NO_SPACE = 1
    NO_FILE_COMPLETION = 2
    FILTER_PREFIX = 4
    KEEP_ORDER = 8
    FILE_COMPLETION = 16
    DIRECTORY_COMPLETION = 32
    ERROR = 64

    def to_wire(self) -> int:
        return self.value

    @classmethod
    def from_wire(cls, value: int) -> CompletionDirective:
        return cls(value)


class CompletionType(str, enum.Enum):
    """What kind of token the user is completing."""

    SUBCOMMAND = "subcommand"
    OPTION_NAME = "option_name"
    OPTION_VALUE = "option_value"
    POSITIONAL = "positional"


class CandidateKind(str, enum.Enum):
    SUBCOMMAND = "subcommand"
    OPTION = "option"
    VALUE = "value"
    FILE = "file"
    DIRECTORY = "directory"


class CompletionCandidate(BaseModel):
    """A single completion suggestion."""

    value: str
    description: Optional[str] = None
    kind: CandidateKind = CandidateKind.VALUE


class CandidateResult(BaseModel):
    """Candidates for one request plus the directive telling the shell what to do next."""

    candidates: list[CompletionCandidate] = Field(default_factory=list)
    directive: CompletionDirective = CompletionDirective.DEFAULT
