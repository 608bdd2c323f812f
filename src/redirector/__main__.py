from redirector.cli import cli

cli()
