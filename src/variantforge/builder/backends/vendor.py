"""Vendors the Go modules of an external source archive inside the SDK image."""

from pathlib import Path
import shlex

from pyvider.telemetry import logger

from ..exceptions import VendorError
from ..models import ExternalFile
from .process import run_subprocess

_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".tar.xz", ".tar")


def _strip_archive_suffix(name: str) -> str:
    for suffix in _ARCHIVE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def vendor_script(external_file: ExternalFile) -> str:
    archive = external_file.local_name
    root_path = str(
        external_file.bundle_root_path or _strip_archive_suffix(archive)
    )
    output_path = str(external_file.bundle_output_path or f"bundled-{archive}")
    lines = [
        "set -euo pipefail",
        f"tar -xf {shlex.quote(archive)}",
        f"pushd {shlex.quote(root_path)} >/dev/null",
        "go mod vendor",
        "popd >/dev/null",
        f"tar -czf {shlex.quote(output_path)} {shlex.quote(root_path + '/vendor')}",
        f"rm -rf {shlex.quote(root_path)}",
    ]
    return "\n".join(lines)


class GoModVendorer:
    docker_executable = "docker"

    def vendor(
        self,
        root_dir: Path,
        package_dir: Path,
        external_file: ExternalFile,
        sdk_image: str,
    ) -> None:
        root_dir = root_dir.resolve()
        package_dir = package_dir.resolve()
        if not package_dir.is_relative_to(root_dir):
            raise VendorError(
                f"Package directory {package_dir} is outside of root {root_dir}"
            )

        logger.info(
            "Vendoring Go modules",
            archive=external_file.local_name,
            sdk_image=sdk_image,
        )
        command = [
            self.docker_executable,
            "run",
            "--rm",
            "--network",
            "host",
            "-e",
            "GOFLAGS=-mod=mod",
            "-v",
            f"{root_dir}:{root_dir}",
            "-w",
            str(package_dir),
            sdk_image,
            "bash",
            "-c",
            vendor_script(external_file),
        ]
        run_subprocess(command, error_cls=VendorError)
