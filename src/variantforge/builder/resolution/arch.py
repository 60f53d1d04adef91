from ..exceptions import UnsupportedArchError
from ..models import ManifestInfo, SupportedArch


def check_supported_arch(manifest: ManifestInfo, arch: SupportedArch) -> None:
    """Ensures the requested arch is one the variant supports.

    A manifest without a supported-arch list accepts every architecture.
    """
    supported = manifest.supported_arches
    if supported is None or arch in supported:
        return
    raise UnsupportedArchError(str(arch), sorted(str(a) for a in supported))
