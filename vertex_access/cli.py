"""CLI tools for access-control administration and diagnostics."""

import uuid

import click

from vertex_access.core.decisions import Redirect, decide, decision_matrix
from vertex_access.core.zones import Zone, classify
from vertex_access.db.enums import AuthStatus, Role


@click.group()
def cli():
    """Vertex access CLI tools."""
    pass


@cli.command()
def init_db():
    """Create tables (local development; production uses migrations)."""
    from vertex_access.db import models  # noqa: F401
    from vertex_access.db.base import Base
    from vertex_access.db.session import engine

    Base.metadata.create_all(engine)
    click.echo("✅ Tables created")


@cli.command(name="classify")
@click.argument("path")
def classify_command(path: str):
    """Print the protection zone for a request PATH."""
    click.echo(classify(path).value)


@cli.command(name="decide")
@click.argument("zone", type=click.Choice([z.value for z in Zone]))
@click.argument("subject", type=click.Choice([*[r.value for r in Role], *[s.value for s in AuthStatus]]))
def decide_command(zone: str, subject: str):
    """Print the guard decision for a ZONE and a role (or auth status)."""
    subject_value = Role(subject) if Role.has_value(subject) else AuthStatus(subject)
    decision = decide(Zone(zone), subject_value)
    if isinstance(decision, Redirect):
        click.echo(f"redirect {decision.target}")
    else:
        click.echo("allow")


@cli.command()
def matrix():
    """Print the full zone x role decision table."""
    table = decision_matrix()
    subjects = [*[r.value for r in Role], *[s.value for s in AuthStatus]]
    click.echo("zone".ljust(16) + "".join(s.ljust(20) for s in subjects))
    for zone, row in table.items():
        cells = []
        for subject in subjects:
            decision = row[subject]
            cells.append(("-> " + decision.target if isinstance(decision, Redirect) else "allow").ljust(20))
        click.echo(zone.value.ljust(16) + "".join(cells))


@cli.command()
@click.option("--actor", required=True, help="Subject id of the acting super_admin")
@click.option("--subject", required=True, help="Subject id whose role changes")
@click.option("--role", "new_role", required=True, type=click.Choice([r.value for r in Role]))
def promote(actor: str, subject: str, new_role: str):
    """
    Change a subject's role as a super_admin.

    Example:
        vertex-access promote --actor <uuid> --subject <uuid> --role team
    """
    from vertex_access.core.role_cache import build_role_cache
    from vertex_access.db.session import SessionLocal
    from vertex_access.services import profile_service

    try:
        actor_id = uuid.UUID(actor)
        subject_id = uuid.UUID(subject)
    except ValueError:
        click.echo("❌ --actor and --subject must be UUIDs")
        raise SystemExit(1)

    db = SessionLocal()
    try:
        result = profile_service.update_profile_role(
            db, subject_id, Role(new_role), by_whom=actor_id, cache=build_role_cache()
        )
    finally:
        db.close()

    if isinstance(result, profile_service.Denied):
        click.echo(f"❌ {result.reason}")
        raise SystemExit(1)
    click.echo(f"✅ {subject_id} is now {new_role}")


if __name__ == "__main__":
    cli()
