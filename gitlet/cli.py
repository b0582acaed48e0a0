#
# gitlet - Simple git-like object store
# Copyright (C) 2026 The gitlet authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitlet is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Simple command-line interface to gitlet.

This is a very simple command-line wrapper for gitlet. Each subcommand
maps onto one function in `gitlet.porcelain`.
"""

__all__ = [
    "Command",
    "cmd_cat_file",
    "cmd_clone",
    "cmd_commit_tree",
    "cmd_hash_object",
    "cmd_help",
    "cmd_init",
    "cmd_ls_tree",
    "cmd_write_tree",
    "commands",
    "main",
]

import argparse
import logging
import os
import signal
import sys
from collections.abc import Sequence

from gitlet import porcelain

from .errors import GitletError
from .file import FileLocked
from .log_utils import default_logging_config
from .repo import Repo

logger = logging.getLogger(__name__)


def signal_int(signal: int, frame: object) -> None:
    """Handle interrupt signal by exiting.

    Args:
        signal: Signal number
        frame: Current stack frame
    """
    sys.exit(1)


class Command:
    """A gitlet subcommand."""

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_init(Command):
    """Create an empty Git repository or reinitialize an existing one."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the init command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet init")
        parser.add_argument(
            "path", nargs="?", default=os.getcwd(), help="Repository path"
        )
        parsed_args = parser.parse_args(args)

        porcelain.init(parsed_args.path)


class cmd_cat_file(Command):
    """Provide content, type or size information for repository objects."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the cat-file command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet cat-file")
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument(
            "-p",
            dest="show",
            action="store_const",
            const="pretty",
            help="Pretty-print the contents of the object",
        )
        group.add_argument(
            "-t",
            dest="show",
            action="store_const",
            const="type",
            help="Show the object type",
        )
        group.add_argument(
            "-s",
            dest="show",
            action="store_const",
            const="size",
            help="Show the object size",
        )
        parser.add_argument("object", help="Object to show")
        parsed_args = parser.parse_args(args)

        repo = Repo.discover()
        porcelain.cat_file(
            repo, parsed_args.object, sys.stdout.buffer, show=parsed_args.show
        )


class cmd_hash_object(Command):
    """Compute object ID and optionally create an object from a file."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the hash-object command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet hash-object")
        parser.add_argument(
            "-w",
            dest="write",
            action="store_true",
            help="Write the object into the object database",
        )
        parser.add_argument("path", help="File to hash")
        parsed_args = parser.parse_args(args)

        repo = Repo.discover() if parsed_args.write else None
        sha = porcelain.hash_object(
            parsed_args.path, repo=repo, write=parsed_args.write
        )
        sys.stdout.write(sha.decode("ascii") + "\n")


class cmd_ls_tree(Command):
    """List the contents of a tree object."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the ls-tree command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet ls-tree")
        parser.add_argument(
            "-r",
            "--recursive",
            action="store_true",
            help="Recursively list tree contents.",
        )
        parser.add_argument(
            "--name-only", action="store_true", help="Only display name."
        )
        parser.add_argument("treeish", help="Tree-ish to list")
        parsed_args = parser.parse_args(args)

        repo = Repo.discover()
        porcelain.ls_tree(
            repo,
            parsed_args.treeish,
            outstream=sys.stdout.buffer,
            recursive=parsed_args.recursive,
            name_only=parsed_args.name_only,
        )


class cmd_write_tree(Command):
    """Create a tree object from the working directory."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the write-tree command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet write-tree")
        parser.parse_args(args)
        repo = Repo.discover()
        sys.stdout.write("{}\n".format(porcelain.write_tree(repo).decode()))


class cmd_commit_tree(Command):
    """Create a new commit object from a tree."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the commit-tree command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet commit-tree")
        parser.add_argument("--message", "-m", required=True, help="Commit message")
        parser.add_argument("-p", dest="parent", help="Parent commit")
        parser.add_argument("tree", help="Tree SHA to commit")
        parsed_args = parser.parse_args(args)

        repo = Repo.discover()
        parents = [parsed_args.parent] if parsed_args.parent else None
        sha = porcelain.commit_tree(
            repo, tree=parsed_args.tree, message=parsed_args.message, parents=parents
        )
        sys.stdout.write("{}\n".format(sha.decode()))


class cmd_clone(Command):
    """Clone a repository into a new directory."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the clone command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet clone")
        parser.add_argument(
            "-b",
            "--branch",
            type=str,
            help="Check out branch instead of main or the remote HEAD",
        )
        parser.add_argument(
            "-n",
            "--no-checkout",
            dest="checkout",
            action="store_false",
            help="Do not check out the branch after cloning",
        )
        parser.add_argument("source", help="Repository to clone from")
        parser.add_argument("target", nargs="?", help="Directory to clone into")
        parsed_args = parser.parse_args(args)

        porcelain.clone(
            parsed_args.source,
            parsed_args.target,
            branch=parsed_args.branch,
            checkout=parsed_args.checkout,
        )


class cmd_help(Command):
    """Display help information."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the help command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="gitlet help")
        parser.add_argument(
            "-a",
            "--all",
            action="store_true",
            help="List all commands.",
        )
        parsed_args = parser.parse_args(args)

        if parsed_args.all:
            logger.info("Available commands:")
            for cmd in sorted(commands):
                logger.info("  %s", cmd)
        else:
            logger.info(
                "gitlet is a small git-compatible object store.\n"
                "\n"
                "For a list of supported commands, see 'gitlet help -a'."
            )


commands = {
    "cat-file": cmd_cat_file,
    "clone": cmd_clone,
    "commit-tree": cmd_commit_tree,
    "hash-object": cmd_hash_object,
    "help": cmd_help,
    "init": cmd_init,
    "ls-tree": cmd_ls_tree,
    "write-tree": cmd_write_tree,
}


def main(argv: Sequence[str] | None = None) -> int | None:
    """Main entry point for the gitlet CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        parser = argparse.ArgumentParser(
            prog="gitlet", description="Simple command-line interface to gitlet"
        )
        parser.add_argument(
            "command",
            nargs="?",
            help=f"Command to run. Available: {', '.join(sorted(commands.keys()))}",
        )
        parser.print_help()
        return 1

    default_logging_config()

    cmd = argv[0]
    cmd_args = argv[1:]

    try:
        cmd_kls = commands[cmd]
    except KeyError:
        logging.fatal("No such subcommand: %s", cmd)
        return 1
    try:
        return cmd_kls().run(cmd_args)
    except (GitletError, FileLocked, OSError) as e:
        logger.error("error: %s", e)
        return 1


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)

    sys.exit(main())


if __name__ == "__main__":
    _main()
