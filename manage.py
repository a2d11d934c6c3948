#!/usr/bin/env python3
"""
Fantasy Predictions Management CLI

This script provides command-line management functionality for the application.
The same commands are available through ``flask --app fantasy:create_app``.
"""

import click

from fantasy import create_app
from fantasy.commands import db_cmd, group, match, status

app = create_app()


@click.group()
def cli():
    """Fantasy Predictions Management CLI"""
    pass


cli.add_command(match)
cli.add_command(group)
cli.add_command(db_cmd)
cli.add_command(status)


if __name__ == "__main__":
    with app.app_context():
        cli()
