"""Reads build metadata out of a Cargo-style TOML manifest."""

from collections.abc import Mapping
from pathlib import Path
import tomllib
from typing import Any, Protocol

from ..exceptions import BuildError, ManifestParseError
from ..models import (
    AnyVariant,
    BundleModule,
    ExternalFile,
    ManifestInfo,
    SensitivityType,
    SpecificVariant,
    SupportedArch,
    VariantSensitivity,
)


class ManifestProvider(Protocol):
    def parse(self, path: Path) -> ManifestInfo: ...


def _table(data: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    current: Any = data
    for key in keys:
        current = current.get(key, {})
        if not isinstance(current, Mapping):
            raise ValueError(f"'{'.'.join(keys)}' must be a table")
    return current


def _string_list(conf: Mapping[str, Any], key: str) -> tuple[str, ...] | None:
    value = conf.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return tuple(value)


def _sensitivity(value: Any) -> VariantSensitivity | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return AnyVariant(value)
    if isinstance(value, str):
        try:
            return SpecificVariant(SensitivityType(value))
        except ValueError:
            pass
    raise ValueError(
        "'variant-sensitive' must be a boolean or one of "
        f"{', '.join(t.value for t in SensitivityType)}, got {value!r}"
    )


def _external_file(entry: Any) -> ExternalFile:
    if not isinstance(entry, Mapping):
        raise ValueError("'external-files' entries must be tables")
    try:
        url = entry["url"]
        sha512 = entry["sha512"]
    except KeyError as e:
        raise ValueError(f"external file is missing {e.args[0]!r}") from e
    for key, value in (("url", url), ("sha512", sha512)):
        if not isinstance(value, str):
            raise ValueError(f"external file '{key}' must be a string, got {value!r}")

    modules = entry.get("bundle-modules")
    if modules is not None:
        try:
            modules = tuple(BundleModule(m) for m in modules)
        except ValueError as e:
            raise ValueError(f"unknown bundle module in {modules!r}") from e

    def optional_path(key: str) -> Path | None:
        raw = entry.get(key)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise ValueError(f"external file '{key}' must be a string, got {raw!r}")
        return Path(raw)

    return ExternalFile(
        url=url,
        sha512=sha512,
        path=optional_path("path"),
        force_upstream=bool(entry.get("force-upstream", False)),
        bundle_modules=modules,
        bundle_root_path=optional_path("bundle-root-path"),
        bundle_output_path=optional_path("bundle-output-path"),
    )


def _image_features(value: Any) -> dict[str, bool | None] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError("'image-features' must be a table")
    for name, enabled in value.items():
        if not isinstance(enabled, bool):
            raise ValueError(f"image feature '{name}' must be a boolean")
    return dict(value)


def _manifest_from_data(path: Path, data: Mapping[str, Any]) -> ManifestInfo:
    build_package = _table(data, "package", "metadata", "build-package")
    build_variant = _table(data, "package", "metadata", "build-variant")

    external_files = build_package.get("external-files")
    if external_files is not None:
        external_files = tuple(_external_file(e) for e in external_files)

    package_features = _string_list(build_package, "package-features")
    if package_features is not None:
        package_features = frozenset(package_features)

    supported_arches = _string_list(build_variant, "supported-arches")
    if supported_arches is not None:
        supported_arches = frozenset(SupportedArch.parse(a) for a in supported_arches)

    defaults_dir = build_variant.get("defaults-dir")
    if defaults_dir is not None:
        defaults_dir = path.parent / defaults_dir

    return ManifestInfo(
        manifest_path=path,
        package_name=build_package.get("package-name"),
        variant_sensitive=_sensitivity(build_package.get("variant-sensitive")),
        package_features=package_features,
        source_groups=_string_list(build_package, "source-groups"),
        external_files=external_files,
        included_packages=_string_list(build_variant, "included-packages"),
        image_format=build_variant.get("image-format"),
        kernel_parameters=_string_list(build_variant, "kernel-parameters"),
        supported_arches=supported_arches,
        image_features=_image_features(build_variant.get("image-features")),
        defaults_dir=defaults_dir,
    )


class TomlManifestProvider:
    """Parses ``[package.metadata.build-package]`` and ``build-variant`` tables."""

    def parse(self, path: Path) -> ManifestInfo:
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except OSError as e:
            raise ManifestParseError(path, e) from e
        except tomllib.TOMLDecodeError as e:
            raise ManifestParseError(path, f"invalid TOML: {e}") from e

        try:
            return _manifest_from_data(path, data)
        except (BuildError, ValueError, TypeError) as e:
            raise ManifestParseError(path, e) from e
