"""Allow ``python -m taming``."""

from taming_cli.main import app

app()
