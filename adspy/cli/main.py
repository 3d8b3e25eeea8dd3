"""
Main CLI entry point for adspy
"""

import click

from .analyze import analyze_command, recent_command, show_command
from ..core.observability import setup_logfire


@click.group()
@click.version_option(version='0.1.0')
def cli():
    """
    adspy - Competitive ad gap analysis

    Compare one brand's ads against five competitors and get
    recommendations for closing the gaps.
    """
    setup_logfire()


# Register commands
cli.add_command(analyze_command)
cli.add_command(show_command)
cli.add_command(recent_command)


if __name__ == '__main__':
    cli()
