from pathlib import Path
import subprocess

from pyvider.telemetry import logger

from ..exceptions import BuildError


def run_subprocess(
    command: list[str],
    cwd: Path | str | None = None,
    error_cls: type[BuildError] = BuildError,
) -> str:
    logger.info(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command, capture_output=True, text=True, cwd=cwd, check=False
        )
    except OSError as e:
        raise error_cls(f"Failed to start {command[0]}: {e}") from e
    if result.returncode != 0:
        logger.error(
            "Command failed",
            command=" ".join(command),
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
        )
        raise error_cls(
            f"Command '{' '.join(command[:2])}' failed with exit code {result.returncode}"
        )
    if result.stderr:
        logger.debug("Command stderr", output=result.stderr.strip())
    return result.stdout.strip()
