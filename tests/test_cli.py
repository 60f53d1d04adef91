"""Tests for the builder's command-line interface."""

from pathlib import Path
import tomllib
from unittest.mock import patch

from click.testing import CliRunner
import pytest

from variantforge.builder.cli import cli
from variantforge.builder.models import PackageBuild, SupportedArch, VariantBuild


@pytest.fixture
def variant_env(build_tree: Path) -> dict[str, str]:
    return {
        "BUILDSYS_ARCH": "x86_64",
        "BUILDSYS_ROOT_DIR": str(build_tree),
        "CARGO_MANIFEST_DIR": str(build_tree / "variants" / "metal-dev"),
        "BUILDSYS_SDK_IMAGE": "sdk:latest",
        "BUILDSYS_VERSION_BUILD": "abc123",
        "BUILDSYS_VERSION_FULL": "1.2.3-abc123",
        "BUILDSYS_VARIANT": "metal-dev",
        "BUILDSYS_NAME": "forge",
        "BUILDSYS_PRETTY_NAME": "Forge OS",
        "BUILDSYS_VERSION_IMAGE": "1.2.3",
        "BUILDSYS_OUTPUT_DIR": str(build_tree / "build" / "images"),
    }


def test_build_variant_without_packages(build_tree: Path, variant_env: dict[str, str]) -> None:
    """Writes merged defaults, warns, and exits cleanly without building."""
    variant_dir = build_tree / "variants" / "metal-dev"
    (variant_dir / "Cargo.toml").write_text(
        '[package]\nname = "metal-dev"\n\n'
        '[package.metadata.build-variant]\ndefaults-dir = "defaults.d"\n'
    )
    (variant_dir / "defaults.d").mkdir()
    (variant_dir / "defaults.d" / "10.toml").write_text("[settings]\na = 1\n")

    runner = CliRunner()
    with patch("variantforge.builder.backends.docker.DockerBuild.build") as mock_build:
        result = runner.invoke(cli, ["build-variant"], env=variant_env)

    assert result.exit_code == 0, result.output
    mock_build.assert_not_called()
    lines = result.output.splitlines()
    assert "cargo:rerun-if-env-changed=BUILDSYS_ARCH" in lines
    assert f"cargo:rerun-if-changed={variant_dir / 'Cargo.toml'}" in lines
    assert f"cargo:rerun-if-changed={variant_dir / 'defaults.d' / '10.toml'}" in lines
    assert "cargo:warning=No included packages in manifest. Skipping variant build." in lines
    with (build_tree / "build" / "tools" / "defaults.toml").open("rb") as f:
        assert tomllib.load(f) == {"settings": {"a": 1}}


def test_build_variant_unsupported_arch(build_tree: Path, variant_env: dict[str, str]) -> None:
    (build_tree / "variants" / "metal-dev" / "Cargo.toml").write_text(
        '[package.metadata.build-variant]\nsupported-arches = ["aarch64"]\n'
    )

    runner = CliRunner()
    result = runner.invoke(cli, ["build-variant"], env=variant_env)

    assert result.exit_code == 1
    errors = [line for line in result.output.splitlines() if line.startswith("error:")]
    assert errors == [
        "error: Unsupported architecture x86_64, this variant supports aarch64"
    ]
    assert "Traceback" not in result.output


def test_missing_environment_variable(variant_env: dict[str, str]) -> None:
    env = {**variant_env, "BUILDSYS_NAME": ""}

    runner = CliRunner()
    result = runner.invoke(cli, ["build-variant"], env=env)

    assert result.exit_code == 1
    assert "error: Missing environment variable 'BUILDSYS_NAME'" in result.output


def test_build_package_passes_request(build_tree: Path, variant_env: dict[str, str]) -> None:
    env = {
        **variant_env,
        "BUILDSYS_ARCH": "arm64",
        "CARGO_MANIFEST_DIR": str(build_tree / "packages" / "hello"),
        "CARGO_PKG_NAME": "hello",
        "BUILDSYS_SOURCES_DIR": str(build_tree / "sources"),
        "BUILDSYS_PACKAGES_DIR": str(build_tree / "build" / "rpms"),
        "BUILDSYS_LOOKASIDE_CACHE": "https://cache.example.com",
        "BUILDSYS_UPSTREAM_SOURCE_FALLBACK": "true",
    }

    runner = CliRunner()
    with patch("variantforge.builder.cli.BuildOrchestrator") as MockOrchestrator:
        result = runner.invoke(cli, ["build-package"], env=env)

    assert result.exit_code == 0, result.output
    (request,) = MockOrchestrator.return_value.run.call_args.args
    assert isinstance(request, PackageBuild)
    assert request.common.arch is SupportedArch.AARCH64
    assert request.upstream_source_fallback is True
    assert request.sources_dir == build_tree / "sources"


def test_options_override_environment(build_tree: Path, variant_env: dict[str, str]) -> None:
    runner = CliRunner()
    with patch("variantforge.builder.cli.BuildOrchestrator") as MockOrchestrator:
        result = runner.invoke(
            cli, ["build-variant", "--pretty-name", "Other OS"], env=variant_env
        )

    assert result.exit_code == 0, result.output
    (request,) = MockOrchestrator.return_value.run.call_args.args
    assert isinstance(request, VariantBuild)
    assert request.pretty_name == "Other OS"


def test_version_option() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("vfbuild version ")
