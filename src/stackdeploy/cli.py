"""CLI entrypoint for stackdeploy."""

import logging
import sys

import click
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, NoRegionError

from stackdeploy.aws.client import CloudFormationClient
from stackdeploy.config import DeployOptions
from stackdeploy.deployer import Deployer
from stackdeploy.errors import ConfigurationError, StackDeployError, TemplateValidationError
from stackdeploy.formatter import ConsoleSink, format_json
from stackdeploy.sink import LoggingSink, ProgressSink


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--param")
        params[key] = value
    return params


@click.command()
@click.option("--name", required=True, help="Stack name.")
@click.option(
    "--template",
    "template_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="Path to the CloudFormation template.",
)
@click.option("--param", multiple=True, help="Template parameter (KEY=VALUE). Repeatable.")
@click.option("--description", default=None, help="Change set description.")
@click.option("--token", default=None, help="Idempotency token (defaults to $BUILD_NUMBER).")
@click.option("--no-wait", is_flag=True, help="Return as soon as the change set is executed.")
@click.option(
    "--max-poll-attempts",
    type=int,
    default=None,
    help="Give up after this many polls of the change set or stack.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--region", default=None, help="AWS region.")
def main(
    name,
    template_path,
    param,
    description,
    token,
    no_wait,
    max_poll_attempts,
    output_format,
    verbose,
    region,
):
    """Deploy a CloudFormation template through a change set."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    options = DeployOptions(
        name=name,
        template_path=template_path,
        parameters=_parse_params(param),
        description=description,
        wait_for_stack=not no_wait,
        idempotency_token=token,
    )

    if output_format == "table":
        sink: ProgressSink = ConsoleSink()
    elif verbose:
        sink = LoggingSink()
    else:
        sink = ProgressSink()

    try:
        client = CloudFormationClient(region=region)
        deployer = Deployer(client, sink=sink, max_poll_attempts=max_poll_attempts)
        result = deployer.deploy(options)
    except (ConfigurationError, TemplateValidationError, NoRegionError, NoCredentialsError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except (StackDeployError, ClientError, BotoCoreError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == "json":
        click.echo(format_json(result))
    elif not result.success:
        click.echo(f"Deploy failed: {result.status} ({result.reason})", err=True)

    sys.exit(0 if result.success else 1)
