from skillreg.apps.cli.app import app

app()
