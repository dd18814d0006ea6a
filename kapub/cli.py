"""
kapub CLI

Publish knowledge assets to the DKG and query them.

Configuration is read from the environment (and a .env file, if present)
once per command, validated, then passed down explicitly.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
import structlog
from dotenv import load_dotenv

from kapub import __version__
from kapub.config.settings import PublisherConfig
from kapub.core.knowledge_publisher import KnowledgePublisher
from kapub.exceptions import ConfigValidationError, KapubError
from kapub.schemas.templates import load_templates


# ============================================================================
# Helper Functions
# ============================================================================

def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()],
    )
    # structlog renders, stdlib handlers write (stderr, keeps stdout clean for --json)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def build_publisher(require_paranet: bool = False) -> KnowledgePublisher:
    """Build a publisher from the environment, validating the configuration first."""
    config = PublisherConfig.from_env()
    config.validate(require_paranet=require_paranet)
    return KnowledgePublisher(config)


def run_with_publisher(func, require_paranet: bool = False):
    """Run `func(publisher)` and always release the publisher's connections."""
    try:
        publisher = build_publisher(require_paranet=require_paranet)
    except ConfigValidationError as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)

    async def runner():
        try:
            return await func(publisher)
        finally:
            await publisher.close()

    try:
        return asyncio.run(runner())
    except KapubError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


def echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


# ============================================================================
# CLI
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name='kapub')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """kapub - Knowledge asset publisher for the OriginTrail DKG."""
    load_dotenv()
    configure_logging(verbose)


@cli.command('publish')
@click.option('--assets-dir', type=click.Path(file_okay=False), help='Input directory (default: ASSETS_DIR)')
@click.option('--template', 'template_name', help='Schema template (default: SCHEMA_TEMPLATE)')
@click.option('--require-paranet', is_flag=True, help='Fail if PARANET_UAL is not configured')
def publish(assets_dir: Optional[str], template_name: Optional[str], require_paranet: bool):
    """Publish every .txt/.json/.jsonld file of a directory.

    Example:
        kapub publish --assets-dir assets --template social_media_posting
    """
    report = run_with_publisher(
        lambda kp: kp.publish_directory(assets_dir, template_name),
        require_paranet=require_paranet,
    )
    click.echo(report.summary())
    for outcome in report.published:
        click.echo(f"  🔗 {outcome.explorer_url}")


@cli.command('ask')
@click.argument('question')
@click.option('--template', 'template_name', help='Schema template (default: SCHEMA_TEMPLATE)')
@click.option('--json', 'as_json', is_flag=True, help='Print rows as JSON')
def ask(question: str, template_name: Optional[str], as_json: bool):
    """Answer a question with a generated SPARQL query.

    Example:
        kapub ask "Search for social media posts about blockchain or Web3"
    """
    result = run_with_publisher(lambda kp: kp.ask(question, template_name))

    if as_json:
        echo_json(result.rows)
        return

    origin = "fallback" if result.used_fallback else "generated"
    click.echo(f"Query ({origin}):\n{result.query.text}\n")
    click.echo(f"Results: {len(result)}")
    for line in result.formatted():
        click.echo(f"  - {line}")


@cli.command('paranet-query')
@click.option('--template', 'template_name', help='Schema template (default: SCHEMA_TEMPLATE)')
@click.option('--no-wait', is_flag=True, help='Skip the propagation wait')
def paranet_query(template_name: Optional[str], no_wait: bool):
    """List the assets of the configured paranet (PARANET_UAL)."""
    result = run_with_publisher(
        lambda kp: kp.query_paranet(template_name, wait=not no_wait),
        require_paranet=True,
    )
    click.echo(f"Results: {len(result)}")
    for line in result.formatted():
        click.echo(f"  - {line}")


@cli.command('get-asset')
@click.argument('ual')
@click.option('--content-type', type=click.Choice(['public', 'private', 'all']), help='Partition to resolve')
def get_asset(ual: str, content_type: Optional[str]):
    """Resolve a published knowledge asset."""
    asset = run_with_publisher(lambda kp: kp.get_asset(ual, content_type))
    echo_json(asset)


@cli.command('create-paranet')
@click.argument('ual')
@click.option('--name', required=True, help='Paranet name')
@click.option('--description', default='', help='Paranet description')
@click.option('--nodes-access-policy', default=0, type=int)
@click.option('--miners-access-policy', default=0, type=int)
@click.option('--kc-submission-policy', default=0, type=int)
def create_paranet(
    ual: str,
    name: str,
    description: str,
    nodes_access_policy: int,
    miners_access_policy: int,
    kc_submission_policy: int,
):
    """Create a paranet anchored on an existing knowledge asset UAL."""
    result = run_with_publisher(
        lambda kp: kp.create_paranet(
            ual,
            name,
            description,
            nodes_access_policy=nodes_access_policy,
            miners_access_policy=miners_access_policy,
            kc_submission_policy=kc_submission_policy,
        )
    )
    click.echo("✅ Paranet created")
    echo_json(result)


@cli.command('templates')
def templates():
    """List the available schema templates."""
    for name, template in sorted(load_templates().items()):
        click.echo(
            f"{name}: {template.schema_type} "
            f"(projection: {', '.join(template.projection)})"
        )


if __name__ == '__main__':
    cli()
