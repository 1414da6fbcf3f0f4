"""
feeledger/cli/__init__.py

FeeLedger CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    feeledger = "feeledger.cli:cli"
"""

import click

from feeledger.cli.run import run_command


@click.group()
@click.version_option(package_name="feeledger")
def cli() -> None:
    """
    FeeLedger — fee-charging balance ledger.

    \b
    Commands:
      run       Replay a YAML scenario against a fresh ledger.

    \b
    Quick start:
      feeledger run scenario.yaml
      feeledger run scenario.yaml --mode strict
      feeledger run scenario.yaml --format json
    """
    pass


cli.add_command(run_command)
