#!/usr/bin/env python3
"""Cloud Shell launcher: CLI entrypoint."""

import argparse

from cloudconsole.commands.connect import register_connect_command, register_settings_command
from cloudconsole.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Open an Azure Cloud Shell in the local terminal")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_connect_command(subparsers)
    register_settings_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
