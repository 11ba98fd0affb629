from schemaforge.cli.main import cli

cli(prog_name="schemaforge")
