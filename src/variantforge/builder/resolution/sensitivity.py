from ..models import AnyVariant, SpecificVariant, VariantSensitivity

VARIANT_ENV = "BUILDSYS_VARIANT"


def variant_env_vars(sensitivity: VariantSensitivity | None) -> list[str]:
    """Returns the variant identity environment variables a package must track."""
    if sensitivity is None:
        return []
    if isinstance(sensitivity, AnyVariant):
        return [VARIANT_ENV] if sensitivity.enabled else []
    if isinstance(sensitivity, SpecificVariant):
        return [f"{VARIANT_ENV}_{sensitivity.kind.value.upper()}"]
    raise TypeError(f"Unexpected variant sensitivity: {sensitivity!r}")
