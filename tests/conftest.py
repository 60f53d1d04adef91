"""Pytest fixtures for the variantforge-builder test suite."""

import io
from pathlib import Path
from typing import Callable

import pytest

from variantforge.builder.models import CommonArgs, PackageBuild, SupportedArch, VariantBuild
from variantforge.builder.signals import DependencySink


@pytest.fixture
def sink() -> DependencySink:
    """A sink that writes its protocol lines to an in-memory stream."""
    return DependencySink(stream=io.StringIO())


@pytest.fixture
def write_manifest() -> Callable[[Path, str], Path]:
    """A factory fixture that writes a Cargo.toml into a given directory."""

    def _write(directory: Path, content: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "Cargo.toml"
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def build_tree(tmp_path: Path) -> Path:
    """A root directory holding a Dockerfile and empty package/variant dirs."""
    root = tmp_path / "root"
    (root / "packages" / "hello").mkdir(parents=True)
    (root / "variants" / "metal-dev").mkdir(parents=True)
    (root / "sources").mkdir()
    (root / "Dockerfile").write_text("FROM scratch\n")
    return root


def _common(root: Path, manifest_dir: Path, arch: SupportedArch) -> CommonArgs:
    return CommonArgs(
        arch=arch,
        root_dir=root,
        manifest_dir=manifest_dir,
        sdk_image="sdk:latest",
        version_build="abc123",
        version_full="1.2.3-abc123",
    )


@pytest.fixture
def package_request(build_tree: Path) -> PackageBuild:
    return PackageBuild(
        common=_common(build_tree, build_tree / "packages" / "hello", SupportedArch.X86_64),
        cargo_package_name="hello",
        variant="metal-dev",
        sources_dir=build_tree / "sources",
        packages_dir=build_tree / "build" / "rpms",
        lookaside_cache="https://cache.example.com",
    )


@pytest.fixture
def variant_request(build_tree: Path) -> VariantBuild:
    return VariantBuild(
        common=_common(build_tree, build_tree / "variants" / "metal-dev", SupportedArch.X86_64),
        variant="metal-dev",
        name="forge",
        pretty_name="Forge OS",
        version_image="1.2.3",
        output_dir=build_tree / "build" / "images",
    )
