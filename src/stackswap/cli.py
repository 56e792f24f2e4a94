"""CLI entrypoint for stackswap."""

import asyncio
import logging
import sys

import click

from stackswap.aws.client import HotswapClient
from stackswap.config import EcsHotswapProperties, HotswapPropertyOverrides
from stackswap.deployer import HotswapDeployer
from stackswap.diff import diff_templates, load_template
from stackswap.errors import HotswapConfigurationError, TemplateError
from stackswap.formatter import format_json, format_markdown, format_table
from stackswap.models import HotswapMode
from stackswap.policies import PolicyContext, default_registry


@click.command()
@click.option("--stack", required=True, help="Name of the deployed stack.")
@click.option(
    "--template",
    "template_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Newly synthesized JSON template.",
)
@click.option(
    "--previous-template",
    "previous_template_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Template to diff against. Defaults to the stack's deployed template.",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in HotswapMode]),
    default=HotswapMode.FALL_BACK.value,
    help="What to do with changes that cannot be hotswapped.",
)
@click.option(
    "--hotswap-ecs-minimum-healthy-percent",
    type=int,
    default=None,
    help="Lower limit on running ECS tasks during a hotswap, as a percentage.",
)
@click.option(
    "--hotswap-ecs-maximum-healthy-percent",
    type=int,
    default=None,
    help="Upper limit on running or pending ECS tasks during a hotswap, as a percentage.",
)
@click.option("--capability", multiple=True, help="Capability passed to a full deployment.")
@click.option("--max-concurrent", type=int, default=5, help="Max concurrent hotswap operations.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "markdown"]),
    default="table",
    help="Output format.",
)
@click.option("--region", default=None, help="AWS region.")
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
def main(
    stack,
    template_path,
    previous_template_path,
    mode,
    hotswap_ecs_minimum_healthy_percent,
    hotswap_ecs_maximum_healthy_percent,
    capability,
    max_concurrent,
    output_format,
    region,
    verbose,
):
    """Deploy a stack, hotswapping what can be changed in place."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )

    try:
        overrides = HotswapPropertyOverrides(
            ecs_hotswap_properties=EcsHotswapProperties(
                minimum_healthy_percent=hotswap_ecs_minimum_healthy_percent,
                maximum_healthy_percent=hotswap_ecs_maximum_healthy_percent,
            )
        )
        new_template = load_template(template_path)
        old_template = load_template(previous_template_path) if previous_template_path else None
    except (HotswapConfigurationError, TemplateError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    client = HotswapClient(stack, region=region)
    if old_template is None:
        old_template = client.get_template()

    async def full_deployment() -> None:
        await asyncio.to_thread(client.update_stack, new_template, list(capability))

    deployer = HotswapDeployer(
        default_registry(),
        PolicyContext(client=client, overrides=overrides),
        full_deployment,
        max_concurrent=max_concurrent,
    )
    try:
        candidates = diff_templates(old_template, new_template)
    except TemplateError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    result = asyncio.run(deployer.deploy(candidates, HotswapMode(mode)))

    formatters = {
        "table": format_table,
        "json": format_json,
        "markdown": format_markdown,
    }
    click.echo(formatters[output_format](result))

    summary = result.failure_summary()
    if summary:
        click.echo(summary, err=True)
        sys.exit(1)
    sys.exit(0)
