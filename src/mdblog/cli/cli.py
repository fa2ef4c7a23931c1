"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdblog.cli.commands import export_cmd, import_cmd, init_cmd, list_cmd, preview_cmd, render_cmd


app = typer.Typer(name="mdblog", no_args_is_help=True, help="Markdown blog import/export pipeline")

app.command(name="init")(init_cmd)
app.command(name="preview")(preview_cmd)
app.command(name="import")(import_cmd)
app.command(name="export")(export_cmd)
app.command(name="list")(list_cmd)
app.command(name="render")(render_cmd)
