"""
Command-line interface for key material handling.
"""

import click

from . import __version__
from .config import load_config
from .endpoints import materialize_all
from .errors import KeyMaterialError, ReleaseError, format_error_context
from .launcher import run_with_material
from .loggingx import setup_logging, get_logger

logger = get_logger(__name__)

MASK = '***MASKED***'


def _abort(message: str, error: Exception) -> None:
    logger.error(message, **format_error_context(error))
    click.echo(f"{message}: {error}", err=True)
    raise click.Abort()


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', default='WARNING', help='Logging level')
@click.option('-v', '--verbose', is_flag=True, help='Human readable log output')
@click.option('--log-file', default=None, help='Also write logs to this file')
def cli(log_level: str, verbose: bool, log_file: str):
    """Keymaterial - materialize docker credentials for the lifetime of a command."""
    setup_logging(level=log_level, verbose=verbose, log_file=log_file)


@cli.command()
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--show-values', is_flag=True, help='Print values instead of masking them')
def env(config_file: str, show_values: bool):
    """Show the environment a configuration produces, then clean up."""
    try:
        config = load_config(config_file)
        with materialize_all(config.endpoints(), base_dir=config.base_dir) as material:
            for name, value in sorted(material.environment().items()):
                click.echo(f"{name}={value if show_values else MASK}")
    except ReleaseError as e:
        _abort("⚠️  Cleanup may be incomplete", e)
    except KeyMaterialError as e:
        _abort("❌ Failed to materialize credentials", e)
    except Exception as e:
        _abort("❌ Unexpected error", e)


@cli.command(name='exec', context_settings={'ignore_unknown_options': True})
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('command', nargs=-1, required=True, type=click.UNPROCESSED)
@click.option('--timeout', type=float, default=None, help='Command timeout in seconds')
@click.pass_context
def exec_command(ctx: click.Context, config_file: str, command, timeout: float):
    """Run COMMAND with the credentials from CONFIG_FILE, then remove them."""
    try:
        config = load_config(config_file)
        material = materialize_all(config.endpoints(), base_dir=config.base_dir)
    except KeyMaterialError as e:
        _abort("❌ Failed to materialize credentials", e)
    except Exception as e:
        _abort("❌ Unexpected error", e)

    return_code = 1
    try:
        with material:
            result = run_with_material(list(command), material,
                                       timeout=timeout, capture_output=False)
            return_code = result['return_code']
    except ReleaseError as e:
        # The command already ran; report the leak without masking its outcome
        logger.error("Cleanup may be incomplete", **format_error_context(e))
        click.echo(f"⚠️  Cleanup may be incomplete: {e}", err=True)
        if return_code == 0:
            return_code = 1
    except KeyMaterialError as e:
        _abort("❌ Command failed", e)

    ctx.exit(return_code)


if __name__ == '__main__':
    cli()
