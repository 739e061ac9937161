"""apiscramble CLI - Command line interface for apiscramble."""

from apiscramble.cli.commands import cli
from apiscramble.cli.output import CLIOutput


def main() -> None:
    """Main entry point for the apiscramble CLI."""
    cli()


__all__ = ["main", "cli", "CLIOutput"]
