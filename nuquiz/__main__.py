"""Allow ``python -m nuquiz``."""
from nuquiz.cli.main import run

run()
