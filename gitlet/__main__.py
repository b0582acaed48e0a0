"""Entry point for running gitlet as a module.

This module allows gitlet to be run as a Python module using the -m flag:
    python -m gitlet

It serves as the main entry point for the gitlet command-line interface.
"""

from . import cli

if __name__ == "__main__":
    cli._main()
