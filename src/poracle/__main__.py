"""Main entry point for the poracle package."""
from poracle.cli import cli


def main():
    """Main entry point function."""
    cli()


if __name__ == "__main__":
    main()
