"""Click entry point for the ``kubelineage`` command."""

from __future__ import annotations

import click

from kubelineage.cli.render import describe, render_tree
from kubelineage.config import load_config, validate_log_format, validate_log_level
from kubelineage.graph import build_graph
from kubelineage.loader import LoaderError, load_objects
from kubelineage.models.config import KubeLineageConfig
from kubelineage.observability.logging import get_logger, setup_logging


@click.group()
@click.option("--log-level", default=None, help="Override KUBELINEAGE_LOG_LEVEL (debug, info, warning, error).")
@click.option("--log-format", default=None, help="Override KUBELINEAGE_LOG_FORMAT (json, console).")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, log_format: str | None) -> None:
    """Show the objects that depend on a Kubernetes object."""
    try:
        config = load_config()
        if log_level is not None:
            config.log.level = validate_log_level(log_level)
        if log_format is not None:
            config.log.format = validate_log_format(log_format)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    setup_logging(config.log.level, config.log.format)
    ctx.obj = config


@cli.command()
@click.argument("files", nargs=-1, required=True)
@click.option("--uid", default=None, help="UID of the root object (a node name or hostname also works for Nodes).")
@click.option("--kind", default=None, help="Kind of the root object.")
@click.option("--name", default=None, help="Name of the root object.")
@click.option("-n", "--namespace", default="", help="Namespace of the root object.")
@click.option("--group", default=None, help="API group of the root object, when the kind is ambiguous.")
@click.option("--stats", is_flag=True, help="Print counts of relationships that could not be resolved.")
@click.pass_obj
def dependents(
    config: KubeLineageConfig,
    files: tuple[str, ...],
    uid: str | None,
    kind: str | None,
    name: str | None,
    namespace: str,
    group: str | None,
    stats: bool,
) -> None:
    """Print the dependent tree of one object found in FILES (JSON or YAML, "-" for stdin)."""
    log = get_logger("cli")
    if uid is None and not (kind and name):
        raise click.UsageError("either --uid or both --kind and --name are required")

    try:
        objects = load_objects(files)
    except LoaderError as exc:
        raise click.ClickException(str(exc)) from exc

    graph = build_graph(
        objects,
        hostname_label=config.resolver.hostname_label,
        node_aliases=config.resolver.node_aliases,
    )

    if uid is not None:
        root = graph.get(uid)
        if root is None:
            raise click.ClickException(f"no object with uid {uid!r}")
    else:
        matches = graph.find(kind, name, namespace, group)
        if not matches:
            raise click.ClickException(f"no {kind} named {name!r} in namespace {namespace!r}")
        if len(matches) > 1:
            groups = ", ".join(sorted(repr(m.group) for m in matches))
            raise click.ClickException(f"{kind} {name!r} is ambiguous across groups {groups}; pass --group")
        root = matches[0]

    nodes = graph.dependents_of(root.uid)
    log.info("dependents_printed", root=describe(root), dependents=len(nodes) - 1)
    for line in render_tree(nodes, root.uid):
        click.echo(line)

    if stats:
        click.echo("")
        for key, value in graph.stats.as_dict().items():
            click.echo(f"{key}: {value}")
