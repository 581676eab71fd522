"""Shared test fixtures for cliform.

Provides a sample command tree exercising every kind of argument and
sub-command entry, an isolated config environment, and output state
management. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.

The sample tree (program name ``mycli``)::

    mycli [--verbose/-v]
    +-- deploy   --env/-e {dev,staging,prod} (required)  --config/-c FILE.json
    |            --label (repeatable)  --dry-run
    +-- build    [TARGET {app,lib}]  --format/-f {json,yaml,xml}
    |            --out-dir DIR  --token (no completion)
    +-- tag      [TAGS {stable,beta,nightly,rc}...]
    +-- remote
    |   +-- add     NAME [URL]
    |   +-- remove  NAME (from a shell command)
    +-- plugin   lazy: [NAME {alpha,beta}]
    +-- extras   bare loader (opaque): --level
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, Optional

import pytest
from pydantic import BaseModel, Field

from cliform.output import reset_output
from cliform.schema import (
    Arg,
    Command,
    choices_hint,
    define_command,
    directory_hint,
    file_hint,
    lazy,
    no_completion_hint,
    shell_command_hint,
)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every config and data path at a temporary directory.

    Also clears the ``CLIFORM_*`` environment overrides so a developer's
    own settings never leak into a test.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr("cliform.config._is_xdg_platform", lambda: True)
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.delenv("CLIFORM_SHELL_COMMAND_TIMEOUT", raising=False)
    monkeypatch.delenv("CLIFORM_NO_DESCRIPTIONS", raising=False)
    return home


# ---------------------------------------------------------------------------
# Sample command tree
# ---------------------------------------------------------------------------


REMOTE_NAMES_COMMAND = "printf 'origin\\nupstream\\n'"


class RootArgs(BaseModel):
    verbose: Annotated[bool, Arg(alias="v", description="Verbose output")] = False


class DeployArgs(BaseModel):
    env: Annotated[
        Literal["dev", "staging", "prod"],
        Arg(alias="e", description="Target environment"),
    ]
    config: Annotated[
        Optional[str],
        Arg(alias="c", description="Config file", completion=file_hint("json")),
    ] = None
    label: Annotated[list[str], Arg(description="Label to attach")] = Field(default_factory=list)
    dry_run: Annotated[bool, Arg(description="Preview without deploying")] = False


class BuildArgs(BaseModel):
    target: Annotated[
        Optional[str],
        Arg(
            positional=True,
            description="What to build",
            placeholder="TARGET",
            completion=choices_hint("app", "lib"),
        ),
    ] = None
    format: Annotated[
        Literal["json", "yaml", "xml"],
        Arg(alias="f", description="Output format"),
    ] = "json"
    out_dir: Annotated[
        Optional[str],
        Arg(description="Output directory", completion=directory_hint()),
    ] = None
    token: Annotated[
        Optional[str],
        Arg(description="Access token", completion=no_completion_hint()),
    ] = None


class TagArgs(BaseModel):
    tags: Annotated[
        list[Literal["stable", "beta", "nightly", "rc"]],
        Arg(positional=True, description="Release channel"),
    ] = Field(default_factory=list)


class RemoteAddArgs(BaseModel):
    name: Annotated[str, Arg(positional=True, description="Remote name")]
    url: Annotated[Optional[str], Arg(positional=True, description="Remote URL")] = None


class RemoteRemoveArgs(BaseModel):
    name: Annotated[
        str,
        Arg(
            positional=True,
            description="Remote name",
            completion=shell_command_hint(REMOTE_NAMES_COMMAND),
        ),
    ]


class PluginArgs(BaseModel):
    name: Annotated[
        Optional[str],
        Arg(positional=True, description="Plugin name", completion=choices_hint("alpha", "beta")),
    ] = None


class ExtrasArgs(BaseModel):
    level: Annotated[Optional[int], Arg(description="Detail level")] = None


def build_sample_cli(calls: list[tuple[str, Any]]) -> Command:
    """Build the sample tree; every ``run`` appends ``(name, args)`` to *calls*."""

    def recorder(name: str):  # noqa: ANN202
        def run(args: Any) -> None:
            calls.append((name, args))

        return run

    def load_plugin() -> Command:
        calls.append(("load:plugin", None))
        return define_command(
            name="plugin",
            description="Manage plugins",
            args=PluginArgs,
            run=recorder("plugin"),
        )

    def load_extras() -> Command:
        calls.append(("load:extras", None))
        return define_command(
            name="extras",
            description="Extra tools",
            args=ExtrasArgs,
            run=recorder("extras"),
        )

    remote = define_command(
        name="remote",
        description="Manage remotes",
        subcommands={
            "add": define_command(
                name="add", description="Add a remote", args=RemoteAddArgs, run=recorder("remote add")
            ),
            "remove": define_command(
                name="remove",
                description="Remove a remote",
                args=RemoteRemoveArgs,
                run=recorder("remote remove"),
            ),
        },
    )

    return define_command(
        name="mycli",
        description="Sample deployment tool",
        args=RootArgs,
        run=recorder("mycli"),
        subcommands={
            "deploy": define_command(
                name="deploy",
                description="Deploy the application",
                args=DeployArgs,
                run=recorder("deploy"),
            ),
            "build": define_command(
                name="build",
                description="Build artifacts",
                args=BuildArgs,
                run=recorder("build"),
            ),
            "tag": define_command(
                name="tag", description="Tag a release", args=TagArgs, run=recorder("tag")
            ),
            "remote": remote,
            "plugin": lazy(
                define_command(name="plugin", description="Manage plugins", args=PluginArgs),
                load_plugin,
            ),
            "extras": load_extras,
        },
    )


@pytest.fixture
def calls() -> list[tuple[str, Any]]:
    """Records ``(command name, validated args)`` for every command run."""
    return []


@pytest.fixture
def sample_cli(calls: list[tuple[str, Any]]) -> Command:
    """The sample ``mycli`` tree, without the completion sub-commands."""
    return build_sample_cli(calls)

