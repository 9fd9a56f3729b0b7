"""Running build commands through the platform shell and starting the host app."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence
import shlex
import subprocess
import sys


@dataclass
class CommandResult:
    """Exit status and, when captured, output of a finished command."""

    command: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    streamed: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """A command exited with a non-zero status."""

    def __init__(self, result: CommandResult):
        rendered = " ".join(shlex.quote(part) for part in result.command)
        lines = [f"Command failed with exit code {result.returncode}: {rendered}"]
        if not result.streamed:
            lines.extend(text.rstrip() for text in (result.stdout, result.stderr) if text)
        super().__init__("\n".join(lines))
        self.result = result


def shell_command(text: str) -> List[str]:
    """Wrap a shell command string for the platform shell."""

    if sys.platform.startswith("win"):
        return ["cmd", "/C", text]
    return ["sh", "-c", text]


class CommandRunner:
    """Base runner; subclasses implement :meth:`_execute` and :meth:`spawn`.

    ``note`` is a human readable label for the command. For shell commands it
    is the command text as written in the config.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        result = self._execute(list(command), cwd=cwd, note=note, stream=stream)
        if check and not result.ok:
            raise CommandError(result)
        return result

    def run_shell(self, text: str, *, cwd: Path | None = None, check: bool = True) -> CommandResult:
        """Run ``text`` through the platform shell, streaming its output."""
        return self.run(shell_command(text), cwd=cwd, check=check, note=text, stream=True)

    def spawn(self, command: Sequence[str], *, cwd: Path | None = None) -> None:
        """Start ``command`` without waiting for it to finish."""
        raise NotImplementedError

    def _execute(self, command: List[str], *, cwd: Path | None, note: str | None, stream: bool) -> CommandResult:
        raise NotImplementedError


class SubprocessCommandRunner(CommandRunner):
    def _execute(self, command: List[str], *, cwd: Path | None, note: str | None, stream: bool) -> CommandResult:
        completed = subprocess.run(command, cwd=cwd, capture_output=not stream, text=True)
        return CommandResult(command, completed.returncode, completed.stdout or "", completed.stderr or "", stream)

    def spawn(self, command: Sequence[str], *, cwd: Path | None = None) -> None:
        subprocess.Popen(list(command), cwd=cwd)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: Path | None
    note: str | None = None
    stream: bool = False
    detached: bool = False


class RecordingCommandRunner(CommandRunner):
    """Records commands instead of executing them.

    ``failures`` maps a command note to the exit code reported for it, so
    failure paths can be exercised without spawning processes.
    """

    def __init__(self, failures: Mapping[str, int] | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self.failures: Dict[str, int] = dict(failures or {})

    def _execute(self, command: List[str], *, cwd: Path | None, note: str | None, stream: bool) -> CommandResult:
        self.commands.append(RecordedCommand(command, cwd, note, stream))
        return CommandResult(command, self.failures.get(note or "", 0), streamed=stream)

    def spawn(self, command: Sequence[str], *, cwd: Path | None = None) -> None:
        self.commands.append(RecordedCommand(list(command), cwd, detached=True))

    def notes(self) -> List[str]:
        """Notes of recorded commands, in execution order."""
        return [record.note for record in self.commands if record.note is not None]


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "shell_command",
]
