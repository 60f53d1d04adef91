"""Extracts the local source and patch files an RPM spec file refers to."""

from pathlib import Path
import re
from typing import Protocol
from urllib.parse import urlparse

from ..exceptions import SpecParseError
from ..models import SpecInfo

_TAG_RE = re.compile(r"^(Source|Patch)\d*\s*:\s*(?P<value>\S.*?)\s*$", re.IGNORECASE)


class SpecProvider(Protocol):
    def parse(self, path: Path) -> SpecInfo: ...


def _file_name(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme and parsed.netloc:
        return Path(parsed.path).name
    return Path(value).name


class RpmSpecProvider:
    """Reads ``SourceN:`` and ``PatchN:`` tags.

    Sources and patches are expected next to the spec file, so URLs reduce to
    their last path segment and every result is relative to the spec's directory.
    """

    def parse(self, path: Path) -> SpecInfo:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SpecParseError(path, e) from e

        sources: list[Path] = []
        patches: list[Path] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            match = _TAG_RE.match(line)
            if not match:
                continue
            name = _file_name(match["value"])
            if not name:
                raise SpecParseError(path, f"line {lineno} has no file name: {line!r}")
            target = sources if match[1].lower() == "source" else patches
            target.append(path.parent / name)

        return SpecInfo(sources=tuple(sources), patches=tuple(patches))
