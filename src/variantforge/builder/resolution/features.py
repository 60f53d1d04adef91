from collections.abc import Mapping, Set

from ..signals import DependencySink

IMAGE_FEATURE_ENV_PREFIX = "BUILDSYS_VARIANT_IMAGE_FEATURE_"


def image_feature_env(feature: str) -> str:
    return f"{IMAGE_FEATURE_ENV_PREFIX}{feature}"


def negotiate_features(
    image_features: Mapping[str, bool | None] | None,
    package_features: Set[str] | None,
    sink: DependencySink | None = None,
) -> dict[str, bool | None] | None:
    """Restricts the variant's image features to those the package tracks.

    Every tracked feature is watched through its environment variable, whether
    or not the variant declares it. A package that tracks nothing sees no
    features at all; a variant without image features yields ``None``.
    """
    if sink is not None and package_features is not None:
        for feature in sorted(package_features):
            sink.watch_env(image_feature_env(feature))

    if image_features is None:
        return None
    if package_features is None:
        return {}
    return {
        name: value
        for name, value in image_features.items()
        if name in package_features
    }
