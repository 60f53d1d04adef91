"""
Cache-invalidation signals for the enclosing incremental build.

Each signal is written as one line on stdout, in the instruction format the
outer build system reads from build-script output.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import IO

from attrs import define, field
import click


@define(frozen=True, slots=True)
class FileWatch:
    path: Path

    def render(self) -> str:
        return f"cargo:rerun-if-changed={self.path}"


@define(frozen=True, slots=True)
class EnvWatch:
    name: str

    def render(self) -> str:
        return f"cargo:rerun-if-env-changed={self.name}"


DependencySignal = FileWatch | EnvWatch


@define(slots=True)
class DependencySink:
    """Append-only collector and writer of dependency signals.

    Signals are written as soon as they are emitted and also recorded in
    ``signals``. Nothing is deduplicated here.
    """

    stream: IO[str] | None = None
    signals: list[DependencySignal] = field(factory=list)

    def emit(self, signal: DependencySignal) -> None:
        self.signals.append(signal)
        click.echo(signal.render(), file=self.stream)

    def watch_file(self, path: Path | str) -> None:
        self.emit(FileWatch(Path(path)))

    def watch_files(self, paths: Iterable[Path | str]) -> None:
        for path in paths:
            self.watch_file(path)

    def watch_env(self, name: str) -> None:
        self.emit(EnvWatch(name))

    def warn(self, message: str) -> None:
        """Surfaces a non-fatal warning through the outer build's output."""
        click.echo(f"cargo:warning={message}", file=self.stream)

    @property
    def watched_files(self) -> set[Path]:
        return {s.path for s in self.signals if isinstance(s, FileWatch)}

    @property
    def watched_envs(self) -> set[str]:
        return {s.name for s in self.signals if isinstance(s, EnvWatch)}
