"""The `vfbuild` command-line interface."""

from collections.abc import Callable, Mapping
import importlib.metadata
from typing import Any

import click

from . import config
from .exceptions import BuildError
from .packaging.orchestrator import BuildOrchestrator
from .signals import DependencySink

try:
    __version__ = importlib.metadata.version("variantforge-builder")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


def env_options(envs: Mapping[str, str]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Adds one option per setting, each defaulting to its environment variable."""

    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        for param, envvar in reversed(list(envs.items())):
            f = click.option(
                f"--{param.replace('_', '-')}",
                param,
                envvar=envvar,
                show_envvar=True,
                default=None,
            )(f)
        return f

    return decorator


def _run(ctx: click.Context, build_type: str, values: Mapping[str, str | None]) -> None:
    sink = DependencySink()
    try:
        config.rerun_for_envs(build_type, sink)
        if build_type == "package":
            request = config.package_build(values)
        else:
            request = config.variant_build(values)
        BuildOrchestrator(sink=sink).run(request)
    except BuildError as e:
        click.secho(f"error: {e}", fg="red", err=True)
        ctx.exit(1)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="vfbuild",
    message="%(prog)s version %(version)s",
)
def cli() -> None:
    """Package and variant build hook driven by the environment."""
    pass


@cli.command("build-package")
@env_options(config.BUILD_TYPE_ENVS["package"])
@click.pass_context
def build_package_command(ctx: click.Context, **values: str | None) -> None:
    """Builds one package for the current variant."""
    _run(ctx, "package", values)


@cli.command("build-variant")
@env_options(config.BUILD_TYPE_ENVS["variant"])
@click.pass_context
def build_variant_command(ctx: click.Context, **values: str | None) -> None:
    """Merges the variant's default settings and builds its image."""
    _run(ctx, "variant", values)


main = cli
