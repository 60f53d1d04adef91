"""
Environment-driven configuration of a build.

The enclosing build passes every setting through environment variables; the
mappings below tie each setting to the variable it is read from.
"""

from collections.abc import Mapping
from pathlib import Path

from .exceptions import MissingEnvironmentError
from .models import CommonArgs, PackageBuild, SupportedArch, VariantBuild
from .signals import DependencySink

COMMON_ENVS: dict[str, str] = {
    "arch": "BUILDSYS_ARCH",
    "root_dir": "BUILDSYS_ROOT_DIR",
    "manifest_dir": "CARGO_MANIFEST_DIR",
    "sdk_image": "BUILDSYS_SDK_IMAGE",
    "version_build": "BUILDSYS_VERSION_BUILD",
    "version_full": "BUILDSYS_VERSION_FULL",
    "timestamp": "BUILDSYS_TIMESTAMP",
}

PACKAGE_ENVS: dict[str, str] = {
    "cargo_package_name": "CARGO_PKG_NAME",
    "variant": "BUILDSYS_VARIANT",
    "sources_dir": "BUILDSYS_SOURCES_DIR",
    "packages_dir": "BUILDSYS_PACKAGES_DIR",
    "lookaside_cache": "BUILDSYS_LOOKASIDE_CACHE",
    "upstream_source_fallback": "BUILDSYS_UPSTREAM_SOURCE_FALLBACK",
}

VARIANT_ENVS: dict[str, str] = {
    "variant": "BUILDSYS_VARIANT",
    "name": "BUILDSYS_NAME",
    "pretty_name": "BUILDSYS_PRETTY_NAME",
    "version_image": "BUILDSYS_VERSION_IMAGE",
    "output_dir": "BUILDSYS_OUTPUT_DIR",
}

BUILD_TYPE_ENVS: dict[str, dict[str, str]] = {
    "package": {**COMMON_ENVS, **PACKAGE_ENVS},
    "variant": {**COMMON_ENVS, **VARIANT_ENVS},
}


def rerun_for_envs(build_type: str, sink: DependencySink) -> None:
    """Watches every environment variable the given build type reads."""
    for envvar in BUILD_TYPE_ENVS[build_type].values():
        sink.watch_env(envvar)


def _require(values: Mapping[str, str | None], key: str, envs: Mapping[str, str]) -> str:
    value = values.get(key)
    if value is None or value == "":
        raise MissingEnvironmentError(envs[key])
    return value


def common_args(values: Mapping[str, str | None]) -> CommonArgs:
    def req(key: str) -> str:
        return _require(values, key, COMMON_ENVS)

    return CommonArgs(
        arch=SupportedArch.parse(req("arch")),
        root_dir=Path(req("root_dir")),
        manifest_dir=Path(req("manifest_dir")),
        sdk_image=req("sdk_image"),
        version_build=req("version_build"),
        version_full=req("version_full"),
        timestamp=values.get("timestamp") or None,
    )


def package_build(values: Mapping[str, str | None]) -> PackageBuild:
    def req(key: str) -> str:
        return _require(values, key, PACKAGE_ENVS)

    common = common_args(values)
    return PackageBuild(
        common=common,
        cargo_package_name=req("cargo_package_name"),
        variant=req("variant"),
        sources_dir=Path(req("sources_dir")),
        packages_dir=Path(req("packages_dir")),
        lookaside_cache=req("lookaside_cache"),
        upstream_source_fallback=values.get("upstream_source_fallback") == "true",
    )


def variant_build(values: Mapping[str, str | None]) -> VariantBuild:
    def req(key: str) -> str:
        return _require(values, key, VARIANT_ENVS)

    common = common_args(values)
    return VariantBuild(
        common=common,
        variant=req("variant"),
        name=req("name"),
        pretty_name=req("pretty_name"),
        version_image=req("version_image"),
        output_dir=Path(req("output_dir")),
    )
