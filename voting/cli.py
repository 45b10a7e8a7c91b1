"""
campusvote CLI - administrator commands

Usage:
    campusvote init-db
    campusvote items election --faculty Engineering
    campusvote results poll <poll_id>
    campusvote stats
    campusvote issue-token <uid>
"""

import asyncio
import json
from datetime import timedelta

import click

from config import config, get_logger
from database.db import Database
from exceptions import ConfigurationError, NotFoundError
from identity.jwt import TokenIssuer
from voting.click_types import KIND
from voting.service import Audience, VotingService

logger = get_logger(__name__).bind(component="cli")


async def _with_service(fn):
    """Open the configured database, run fn(service), always close"""
    db = await Database.from_config()
    try:
        return await fn(VotingService.build(db))
    finally:
        await db.close()


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """University voting backend administration"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("init-db")
def init_db():
    """Create document store tables (idempotent)"""
    async def run():
        db = await Database.from_config()
        try:
            await db.init_schema()
        finally:
            await db.close()

    asyncio.run(run())
    click.echo("Schema initialized" if config.USE_POSTGRES else "In-memory store needs no schema")


@cli.command("items")
@click.argument("kind", type=KIND)
@click.option("--faculty", "-f", default=None, help="Only items visible to this faculty")
def items(kind, faculty):
    """List published items of a kind with their current status"""
    async def run(service: VotingService):
        return await service.list_eligible_items(faculty, kind)

    views = asyncio.run(_with_service(run))
    if not views:
        click.echo(f"No {kind.value}s")
        return
    for view in views:
        click.echo(f"{view.item.id:<22} {view.computed_status.value:<10} {view.item.title}")


@cli.command("results")
@click.argument("kind", type=KIND)
@click.argument("item_id")
def results(kind, item_id):
    """Live tally for an election or poll"""
    async def run(service: VotingService):
        return await service.get_results(kind, item_id, audience=Audience.ADMIN)

    try:
        tally = asyncio.run(_with_service(run))
    except NotFoundError as e:
        raise click.ClickException(e.args[0])
    click.echo(json.dumps(tally.to_dict(), indent=2))


@cli.command("stats")
def stats():
    """Participation counts across elections and polls"""
    async def run(service: VotingService):
        return await service.participation_stats()

    click.echo(json.dumps(asyncio.run(_with_service(run)), indent=2))


@cli.command("issue-token")
@click.argument("voter_id")
@click.option("--hours", default=1, show_default=True, type=click.IntRange(min=1), help="Token lifetime")
def issue_token(voter_id, hours):
    """Issue a development access token for VOTER_ID"""
    try:
        issuer = TokenIssuer(config.JWT_SECRET)
    except ConfigurationError as e:
        raise click.ClickException(f"{e.args[0]} (set {e.config_key})")
    logger.info("issued development token", voter_id=voter_id, hours=hours)
    click.echo(issuer.issue_access_token(voter_id, expires_in=timedelta(hours=hours)))


def main():
    cli()


if __name__ == "__main__":
    main()
