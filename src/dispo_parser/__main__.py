from dispo_parser.cli import app

app()
