"""
rdagent CLI
Entry point for the edge provisioning agent.
"""

import sys

import click

from .agent.store import load_entity, save_entity
from .agent.wireguard_conf import encode, load_conf
from .schemas.models import Device, WireGuard
from .schemas.validation import validate_device, validate_wireguard
from .utils.config import settings
from .utils.exceptions import NotSetError, RDAgentError


@click.group()
def cli():
    """Edge provisioning agent."""
    pass


# === DAEMON ===
@cli.command()
def run():
    """Resolve configuration, bring the tunnel up and send heartbeats."""
    from .agent.daemon import main as agent_main
    sys.exit(agent_main())


# === DOCUMENT TOOLS ===
@cli.command()
@click.option("--device-file", default=None, help="Device document (default: RD_DEVICE_FILE)")
@click.option("--wireguard-file", default=None, help="WireGuard document (default: RD_WIREGUARD_FILE)")
def check(device_file, wireguard_file):
    """Load and validate both documents without contacting the control plane."""
    checks = [
        ("device", Device, device_file or settings.DEVICE_FILE, validate_device),
        ("wireguard", WireGuard, wireguard_file or settings.WIREGUARD_FILE, validate_wireguard),
    ]
    ok = True
    for name, model, path, validate in checks:
        try:
            validate(load_entity(model, path))
        except NotSetError as e:
            click.echo(f"{name}: {path}: {e.kind.value} ({e})")
            ok = False
        except RDAgentError as e:
            click.echo(f"{name}: {path}: {e}")
            ok = False
        else:
            click.echo(f"{name}: {path}: ok")
    if not ok:
        sys.exit(1)


@cli.command()
@click.option("--wireguard-file", default=None, help="WireGuard document (default: RD_WIREGUARD_FILE)")
def render(wireguard_file):
    """Print the native WireGuard config for the WireGuard document."""
    path = wireguard_file or settings.WIREGUARD_FILE
    try:
        wireguard = load_entity(WireGuard, path)
    except RDAgentError as e:
        raise click.ClickException(str(e))
    click.echo(encode(wireguard.interface, wireguard.peers), nl=False)


@cli.command(name="import-conf")
@click.argument("conf_path")
@click.option("--wireguard-file", default=None, help="WireGuard document (default: RD_WIREGUARD_FILE)")
def import_conf(conf_path, wireguard_file):
    """Replace the interface and peers of the WireGuard document with those of CONF_PATH."""
    path = wireguard_file or settings.WIREGUARD_FILE
    try:
        wireguard = load_entity(WireGuard, path)
    except RDAgentError:
        wireguard = WireGuard(file=path, wireguard_file=conf_path)
    try:
        wireguard = load_conf(wireguard, conf_path)
        save_entity(wireguard, path)
    except RDAgentError as e:
        raise click.ClickException(str(e))
    click.echo(f"Imported {len(wireguard.peers)} peer(s) from {conf_path} into {path}")


if __name__ == "__main__":
    cli()
