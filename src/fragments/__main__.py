"""Entry point for running Fragments as a module: python -m fragments"""

from fragments.cli.main import cli


def main():
    """Run the Fragments CLI."""
    cli(prog_name="fragments")


if __name__ == "__main__":
    main()
