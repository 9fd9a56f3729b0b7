"""Expansion of build references into command lists, and run-once execution."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping

from core.command_runner import CommandError, CommandRunner
from core.console import Console

from .config import BuildRef, BuildRefKind
from .errors import BuildCommandError, BuildGroupCycleError, ConfigurationError


@dataclass(frozen=True, slots=True)
class ResolvedBuild:
    """Flattened commands for one build reference.

    ``group`` is set when the reference named a build group, and is the key
    used to run the commands at most once per invocation.
    """

    commands: tuple[str, ...] = ()
    group: str | None = None


def resolve_build_commands(
    reference: BuildRef | None,
    build_groups: Mapping[str, BuildRef] | None,
) -> List[str]:
    """Flatten ``reference`` into shell commands, following group references in order."""

    return _resolve(reference, build_groups, visiting=[])


def resolve_build_plan(
    reference: BuildRef | None,
    build_groups: Mapping[str, BuildRef] | None,
) -> ResolvedBuild:
    commands = resolve_build_commands(reference, build_groups)
    group = reference.group if reference is not None and reference.kind is BuildRefKind.GROUP else None
    return ResolvedBuild(commands=tuple(commands), group=group)


def _resolve(
    reference: BuildRef | None,
    build_groups: Mapping[str, BuildRef] | None,
    *,
    visiting: List[str],
) -> List[str]:
    if reference is None:
        return []
    if reference.kind is BuildRefKind.COMMAND or reference.kind is BuildRefKind.LIST:
        return list(reference.commands)

    name = reference.group or ""
    if build_groups is None:
        raise ConfigurationError(f"build_group.{name} is referenced but no [build_group] table is defined")
    target = build_groups.get(name)
    if target is None:
        raise ConfigurationError(f"build_group.{name} is not defined")
    if name in visiting:
        raise BuildGroupCycleError(name, visiting)

    visiting.append(name)
    try:
        return _resolve(target, build_groups, visiting=visiting)
    finally:
        visiting.pop()


@dataclass
class BuildExecutor:
    """Runs resolved build plans for one CLI invocation.

    ``executed_groups`` records every group whose commands completed, so a
    group shared by several artifacts only runs once.
    """

    runner: CommandRunner
    console: Console
    workspace: Path
    executed_groups: set[str] = field(default_factory=set)

    def run_plan(self, plan: ResolvedBuild) -> None:
        if plan.group is not None:
            if plan.group in self.executed_groups:
                self.console.debug(f"Skipping build_group '{plan.group}' (already executed)")
                return
            self.run_commands(plan.commands)
            self.executed_groups.add(plan.group)
            return
        self.run_commands(plan.commands)

    def run_commands(self, commands: tuple[str, ...] | List[str]) -> None:
        for command in commands:
            self.console.info(f"Running: {command}")
            try:
                self.runner.run_shell(command, cwd=self.workspace)
            except CommandError as exc:
                raise BuildCommandError(command, exc.result.returncode) from exc

    def run_optional(
        self,
        reference: BuildRef | None,
        build_groups: Mapping[str, BuildRef] | None,
    ) -> None:
        """Run a ``prebuild``/``postbuild`` hook; hooks are not memoized."""
        commands = resolve_build_commands(reference, build_groups)
        if commands:
            self.run_commands(commands)


__all__ = [
    "BuildExecutor",
    "ResolvedBuild",
    "resolve_build_commands",
    "resolve_build_plan",
]
