"""Entry point for ``python -m campaignpipe``."""

from campaignpipe.cli.commands import app

app(prog_name="campaignpipe")
