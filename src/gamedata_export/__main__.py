from gamedata_export.cli import app

app()
