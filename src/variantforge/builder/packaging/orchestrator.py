"""Sequences a package or variant build from manifest to Docker invocation."""

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Protocol

from pyvider.telemetry import logger

from ..backends.cache import LookasideCache
from ..backends.docker import DockerBuild
from ..backends.project import ProjectCrawler, ProjectInfo
from ..backends.vendor import GoModVendorer
from ..models import (
    MANIFEST_FILE_NAME,
    BuildRequest,
    BundleModule,
    ExternalFile,
    ManifestInfo,
    PackageBuild,
    VariantBuild,
)
from ..resolution.arch import check_supported_arch
from ..resolution.defaults import generate_defaults_toml
from ..resolution.features import negotiate_features
from ..resolution.sensitivity import variant_env_vars
from ..signals import DependencySink
from .manifest import ManifestProvider, TomlManifestProvider
from .spec import RpmSpecProvider, SpecProvider


class ExternalFileCache(Protocol):
    def fetch(self, files: Iterable[ExternalFile]) -> None: ...


class ModuleVendorer(Protocol):
    def vendor(
        self,
        root_dir: Path,
        package_dir: Path,
        external_file: ExternalFile,
        sdk_image: str,
    ) -> None: ...


class ProjectCrawlerProtocol(Protocol):
    def crawl(self, directories: Iterable[Path]) -> ProjectInfo: ...


class Builder(Protocol):
    def build(self) -> None: ...


class BuildBackend(Protocol):
    def new_package(
        self,
        request: PackageBuild,
        manifest: ManifestInfo,
        image_features: Mapping[str, bool | None],
        package: str,
    ) -> Builder: ...

    def new_variant(self, request: VariantBuild, manifest: ManifestInfo) -> Builder: ...


CacheFactory = Callable[..., ExternalFileCache]


class BuildOrchestrator:
    def __init__(
        self,
        sink: DependencySink | None = None,
        manifest_provider: ManifestProvider | None = None,
        spec_provider: SpecProvider | None = None,
        cache_factory: CacheFactory = LookasideCache,
        vendorer: ModuleVendorer | None = None,
        crawler: ProjectCrawlerProtocol | None = None,
        backend: BuildBackend = DockerBuild,
    ) -> None:
        self.sink = sink or DependencySink()
        self.manifest_provider = manifest_provider or TomlManifestProvider()
        self.spec_provider = spec_provider or RpmSpecProvider()
        self.cache_factory = cache_factory
        self.vendorer = vendorer or GoModVendorer()
        self.crawler = crawler or ProjectCrawler()
        self.backend = backend

    def run(self, request: BuildRequest) -> None:
        if isinstance(request, PackageBuild):
            self.build_package(request)
        elif isinstance(request, VariantBuild):
            self.build_variant(request)
        else:
            raise TypeError(f"Unexpected build request: {request!r}")

    def _watch_new_files(self, paths: Iterable[Path]) -> None:
        watched = self.sink.watched_files
        for path in paths:
            if path not in watched:
                self.sink.watch_file(path)
                watched.add(path)

    def _read_manifest(self, path: Path) -> ManifestInfo:
        self.sink.watch_file(path)
        return self.manifest_provider.parse(path)

    def build_package(self, request: PackageBuild) -> None:
        common = request.common
        logger.info("Orchestrator starting package build", arch=str(common.arch))

        manifest = self._read_manifest(common.manifest_dir / MANIFEST_FILE_NAME)
        variant_manifest = self._read_manifest(
            common.root_dir / "variants" / request.variant / MANIFEST_FILE_NAME
        )
        check_supported_arch(variant_manifest, common.arch)

        image_features = negotiate_features(
            variant_manifest.image_features, manifest.package_features, self.sink
        )

        watched_envs = self.sink.watched_envs
        for env_var in variant_env_vars(manifest.variant_sensitive):
            if env_var not in watched_envs:
                self.sink.watch_env(env_var)

        if manifest.external_files is not None:
            self._fetch_external_files(request, manifest.external_files)

        if manifest.source_groups is not None:
            dirs = [request.sources_dir / group for group in manifest.source_groups]
            info = self.crawler.crawl(dirs)
            self._watch_new_files(info.files)

        package = manifest.package_name or request.cargo_package_name
        spec_path = common.manifest_dir / f"{package}.spec"
        self._watch_new_files([spec_path])
        spec = self.spec_provider.parse(spec_path)
        self._watch_new_files(spec.sources + spec.patches)

        builder = self.backend.new_package(
            request, manifest, image_features or {}, package
        )
        builder.build()
        logger.info("Package build complete", package=package)

    def _fetch_external_files(
        self, request: PackageBuild, files: tuple[ExternalFile, ...]
    ) -> None:
        common = request.common
        cache = self.cache_factory(
            version=common.version_full,
            lookaside_cache=request.lookaside_cache,
            upstream_source_fallback=request.upstream_source_fallback,
            package_dir=common.manifest_dir,
            sink=self.sink,
        )
        cache.fetch(files)

        for external_file in files:
            for module in external_file.bundle_modules or ():
                if module is BundleModule.GO:
                    self.vendorer.vendor(
                        common.root_dir,
                        common.manifest_dir,
                        external_file,
                        common.sdk_image,
                    )

    def build_variant(self, request: VariantBuild) -> None:
        common = request.common
        logger.info(
            "Orchestrator starting variant build",
            variant=request.variant,
            arch=str(common.arch),
        )

        manifest = self._read_manifest(common.manifest_dir / MANIFEST_FILE_NAME)
        check_supported_arch(manifest, common.arch)

        generate_defaults_toml(manifest.defaults_dir, common.root_dir, self.sink)

        if manifest.included_packages is None:
            self.sink.warn("No included packages in manifest. Skipping variant build.")
            logger.warning("Skipping variant build", variant=request.variant)
            return

        self.backend.new_variant(request, manifest).build()
        logger.info("Variant build complete", variant=request.variant)
