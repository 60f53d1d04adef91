from collections.abc import Iterable
from pathlib import Path


class BuildError(Exception):
    pass


class ManifestParseError(BuildError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to parse manifest {path}: {reason}")


class SpecParseError(BuildError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to parse spec file {path}: {reason}")


class UnknownArchError(BuildError):
    def __init__(self, arch: str) -> None:
        self.arch = arch
        super().__init__(f"Unknown architecture: '{arch}'")


class UnsupportedArchError(BuildError):
    def __init__(self, arch: str, supported: Iterable[str]) -> None:
        self.arch = arch
        self.supported = list(supported)
        super().__init__(
            f"Unsupported architecture {arch}, this variant supports "
            f"{', '.join(self.supported)}"
        )


class MissingEnvironmentError(BuildError):
    def __init__(self, var: str) -> None:
        self.var = var
        super().__init__(f"Missing environment variable '{var}'")


class FileOperationError(BuildError):
    def __init__(self, op: str, path: Path, reason: object) -> None:
        self.op = op
        self.path = path
        super().__init__(f"Failed to {op} {path}: {reason}")


class ListFilesError(BuildError):
    def __init__(self, directory: Path, reason: object) -> None:
        self.directory = directory
        super().__init__(f"Failed to list files in {directory}: {reason}")


class TomlDeserializeError(BuildError):
    def __init__(self, path: Path, reason: object) -> None:
        self.path = path
        super().__init__(f"{path} is not valid TOML: {reason}")


class TomlSerializeError(BuildError):
    def __init__(self, reason: object) -> None:
        super().__init__(f"Failed to serialize default settings: {reason}")


class TomlMergeError(BuildError):
    def __init__(self, reason: object) -> None:
        super().__init__(f"Failed to merge TOML: {reason}")


class ExternalFileFetchError(BuildError):
    pass


class VendorError(BuildError):
    pass


class ProjectCrawlError(BuildError):
    pass


class BuilderInstantiationError(BuildError):
    def __init__(self, reason: object) -> None:
        super().__init__(f"Unable to instantiate the builder: {reason}")


class BuildAttemptError(BuildError):
    pass
