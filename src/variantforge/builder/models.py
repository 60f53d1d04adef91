from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Self
from urllib.parse import urlparse

from attrs import define, field

from .exceptions import UnknownArchError

MANIFEST_FILE_NAME = "Cargo.toml"
DEFAULTS_SUFFIX = ".toml"
DEFAULTS_OUTPUT_PATH = Path("build") / "tools" / "defaults.toml"


class SupportedArch(StrEnum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"

    @classmethod
    def parse(cls, token: str) -> Self:
        """Parses an architecture token, accepting the common aliases."""
        normalized = token.strip().lower()
        aliases = {"amd64": "x86_64", "arm64": "aarch64"}
        try:
            return cls(aliases.get(normalized, normalized))
        except ValueError as e:
            raise UnknownArchError(token) from e


class SensitivityType(StrEnum):
    PLATFORM = "platform"
    RUNTIME = "runtime"
    FAMILY = "family"
    FLAVOR = "flavor"


@define(frozen=True, slots=True)
class AnyVariant:
    """Sensitive to the whole variant identity, or to nothing at all."""

    enabled: bool


@define(frozen=True, slots=True)
class SpecificVariant:
    """Sensitive to a single component of the variant identity."""

    kind: SensitivityType


VariantSensitivity = AnyVariant | SpecificVariant


class BundleModule(StrEnum):
    GO = "go"


@define(frozen=True, slots=True)
class ExternalFile:
    url: str
    sha512: str
    path: Path | None = None
    force_upstream: bool = False
    bundle_modules: tuple[BundleModule, ...] | None = None
    bundle_root_path: Path | None = None
    bundle_output_path: Path | None = None

    @property
    def local_name(self) -> str:
        """The file name this artifact is stored under next to the manifest."""
        if self.path is not None:
            return self.path.name
        return Path(urlparse(self.url).path).name


@define(frozen=True, slots=True)
class ManifestInfo:
    """Read-only view over the build metadata declared in one manifest."""

    manifest_path: Path
    package_name: str | None = None
    variant_sensitive: VariantSensitivity | None = None
    package_features: frozenset[str] | None = None
    source_groups: tuple[str, ...] | None = None
    external_files: tuple[ExternalFile, ...] | None = None
    included_packages: tuple[str, ...] | None = None
    image_format: str | None = None
    kernel_parameters: tuple[str, ...] | None = None
    supported_arches: frozenset[SupportedArch] | None = None
    image_features: Mapping[str, bool | None] | None = field(default=None, eq=False)
    defaults_dir: Path | None = None

    @property
    def manifest_dir(self) -> Path:
        return self.manifest_path.parent


@define(frozen=True, slots=True)
class SpecInfo:
    sources: tuple[Path, ...] = ()
    patches: tuple[Path, ...] = ()


@define(frozen=True, slots=True)
class CommonArgs:
    arch: SupportedArch
    root_dir: Path
    manifest_dir: Path
    sdk_image: str
    version_build: str
    version_full: str
    timestamp: str | None = None


@define(frozen=True, slots=True)
class PackageBuild:
    common: CommonArgs
    cargo_package_name: str
    variant: str
    sources_dir: Path
    packages_dir: Path
    lookaside_cache: str
    upstream_source_fallback: bool = False


@define(frozen=True, slots=True)
class VariantBuild:
    common: CommonArgs
    variant: str
    name: str
    pretty_name: str
    version_image: str
    output_dir: Path


BuildRequest = PackageBuild | VariantBuild
