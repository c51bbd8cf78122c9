from keymaster.cli.main import app

app(prog_name="keymaster")
