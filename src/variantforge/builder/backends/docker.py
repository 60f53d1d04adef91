"""Runs package and variant builds through ``docker build``."""

from collections.abc import Mapping
from pathlib import Path
from typing import Self

from pyvider.telemetry import logger

from ..exceptions import BuildAttemptError, BuilderInstantiationError
from ..models import CommonArgs, ManifestInfo, PackageBuild, VariantBuild
from .process import run_subprocess

DOCKERFILE_NAME = "Dockerfile"


def image_features_arg(features: Mapping[str, bool | None]) -> str:
    """Renders negotiated features as ``name`` / ``no-name`` tokens.

    Features without a value are left out.
    """
    tokens = []
    for name in sorted(features):
        enabled = features[name]
        if enabled is None:
            continue
        tokens.append(name if enabled else f"no-{name}")
    return ",".join(tokens)


def _with_timestamp(build_args: dict[str, str], common: CommonArgs) -> dict[str, str]:
    if common.timestamp:
        build_args["BUILD_TIMESTAMP"] = common.timestamp
    return build_args


class DockerBuild:
    docker_executable = "docker"

    def __init__(
        self,
        root_dir: Path,
        target: str,
        tag: str,
        build_args: dict[str, str],
        output_dir: Path,
    ) -> None:
        self.root_dir = root_dir
        self.target = target
        self.tag = tag
        self.build_args = build_args
        self.output_dir = output_dir

    @classmethod
    def new_package(
        cls,
        request: PackageBuild,
        manifest: ManifestInfo,
        image_features: Mapping[str, bool | None],
        package: str,
    ) -> Self:
        common = request.common
        build_args = {
            "PACKAGE": package,
            "ARCH": str(common.arch),
            "VARIANT": request.variant,
            "VERSION_BUILD": common.version_build,
            "VERSION_FULL": common.version_full,
            "SDK": common.sdk_image,
            "IMAGE_FEATURES": image_features_arg(image_features),
        }
        return cls._new(
            common.root_dir,
            "package",
            f"vfbuild-pkg-{package}-{common.arch}",
            _with_timestamp(build_args, common),
            request.packages_dir,
        )

    @classmethod
    def new_variant(cls, request: VariantBuild, manifest: ManifestInfo) -> Self:
        if manifest.included_packages is None:
            raise BuilderInstantiationError(
                f"{manifest.manifest_path} declares no included packages"
            )
        common = request.common
        build_args = {
            "ARCH": str(common.arch),
            "VARIANT": request.variant,
            "PACKAGES": " ".join(manifest.included_packages),
            "IMAGE_NAME": request.name,
            "PRETTY_NAME": request.pretty_name,
            "IMAGE_FORMAT": manifest.image_format or "raw",
            "KERNEL_PARAMETERS": " ".join(manifest.kernel_parameters or ()),
            "VERSION_IMAGE": request.version_image,
            "VERSION_BUILD": common.version_build,
            "SDK": common.sdk_image,
            "IMAGE_FEATURES": image_features_arg(manifest.image_features or {}),
        }
        return cls._new(
            common.root_dir,
            "variant",
            f"vfbuild-variant-{request.variant}-{common.arch}",
            _with_timestamp(build_args, common),
            request.output_dir,
        )

    @classmethod
    def _new(
        cls,
        root_dir: Path,
        target: str,
        tag: str,
        build_args: dict[str, str],
        output_dir: Path,
    ) -> Self:
        if not (root_dir / DOCKERFILE_NAME).is_file():
            raise BuilderInstantiationError(
                f"{DOCKERFILE_NAME} not found in {root_dir}"
            )
        return cls(root_dir, target, tag, build_args, output_dir)

    def command(self) -> list[str]:
        command = [
            self.docker_executable,
            "build",
            ".",
            "--network",
            "none",
            "--target",
            self.target,
            "--tag",
            self.tag,
            "--output",
            f"type=local,dest={self.output_dir}",
        ]
        for key, value in self.build_args.items():
            command.extend(["--build-arg", f"{key}={value}"])
        return command

    def build(self) -> None:
        logger.info(f"Starting {self.target} build", tag=self.tag)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildAttemptError(
                f"Failed to create output directory {self.output_dir}: {e}"
            ) from e
        run_subprocess(self.command(), cwd=self.root_dir, error_cls=BuildAttemptError)
        logger.info(f"Finished {self.target} build", tag=self.tag)
