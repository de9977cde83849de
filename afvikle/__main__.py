"""Allow running afvikle as ``python -m afvikle``."""

from afvikle.cli import cli

if __name__ == "__main__":
    cli(prog_name="afv")
