"""Fetches a package's external files from the lookaside cache or upstream."""

from collections.abc import Iterable
import os
from pathlib import Path

from pyvider.telemetry import logger
import requests

from ..crypto import matches_sha512
from ..exceptions import ExternalFileFetchError
from ..models import ExternalFile
from ..signals import DependencySink

DEFAULT_TIMEOUT = 60.0


class LookasideCache:
    def __init__(
        self,
        version: str,
        lookaside_cache: str,
        upstream_source_fallback: bool,
        package_dir: Path,
        sink: DependencySink | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.version = version
        self.lookaside_cache = lookaside_cache.rstrip("/")
        self.upstream_source_fallback = upstream_source_fallback
        self.package_dir = package_dir
        self.sink = sink
        self.timeout = timeout

    def fetch(self, files: Iterable[ExternalFile]) -> None:
        for external_file in files:
            self._fetch_one(external_file)

    def lookaside_url(self, external_file: ExternalFile) -> str:
        name = external_file.local_name
        return f"{self.lookaside_cache}/{name}/{external_file.sha512}/{name}"

    def _fetch_one(self, external_file: ExternalFile) -> None:
        name = external_file.local_name
        if not name:
            raise ExternalFileFetchError(
                f"Unable to derive a file name from '{external_file.url}'"
            )
        path = self.package_dir / (external_file.path or name)
        if self.sink is not None:
            self.sink.watch_file(path)

        if path.is_file():
            if matches_sha512(path, external_file.sha512):
                logger.debug("External file already present", path=str(path))
                return
            logger.info(f"Hash mismatch for existing {path}, fetching again")

        tmp_path = path.with_name(f".{name}")
        try:
            if external_file.force_upstream:
                self._download(external_file.url, tmp_path, external_file.sha512)
            else:
                try:
                    self._download(
                        self.lookaside_url(external_file),
                        tmp_path,
                        external_file.sha512,
                    )
                except ExternalFileFetchError as e:
                    if not self.upstream_source_fallback:
                        raise
                    logger.warning(
                        "Lookaside cache fetch failed, falling back to upstream",
                        file=name,
                        error=str(e),
                    )
                    self._download(external_file.url, tmp_path, external_file.sha512)
            os.replace(tmp_path, path)
        except OSError as e:
            raise ExternalFileFetchError(f"Failed to store {path}: {e}") from e
        finally:
            tmp_path.unlink(missing_ok=True)

    def _download(self, url: str, dest: Path, sha512: str) -> None:
        logger.info(f"Downloading {url}")
        try:
            with requests.get(
                url,
                stream=True,
                timeout=self.timeout,
                headers={"User-Agent": f"vfbuild/{self.version}"},
            ) as response:
                response.raise_for_status()
                dest.parent.mkdir(parents=True, exist_ok=True)
                with dest.open("wb") as f:
                    for chunk in response.iter_content(chunk_size=1 << 16):
                        f.write(chunk)
        except (requests.RequestException, OSError) as e:
            raise ExternalFileFetchError(f"Failed to download {url}: {e}") from e

        if not matches_sha512(dest, sha512):
            raise ExternalFileFetchError(f"SHA-512 mismatch for {url}")
