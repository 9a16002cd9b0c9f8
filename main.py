"""
Convenience entrypoint for running from a checkout.

Installed copies should use the `lyricbar` console script:
  - `lyricbar watch`
  - `lyricbar show`
"""

from lyricbar.cli import main as cli_main


def cli() -> None:
    cli_main()


if __name__ == "__main__":
    cli()
