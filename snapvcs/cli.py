"""Command-line front end: argument checks, dispatch and text output."""

import argparse
import logging
import sys
from datetime import datetime

from .base import Commit
from .errors import UsageError, VCSError
from .repository import Repository, StatusReport
from .storage import init_repository, open_repository

logger = logging.getLogger(__name__)

# Accepted operand counts per command
COMMANDS: dict[str, tuple[int, ...]] = {
    "init": (0,),
    "add": (1,),
    "commit": (1,),
    "rm": (1,),
    "log": (0,),
    "global-log": (0,),
    "find": (1,),
    "status": (0,),
    "checkout": (1, 2, 3),
    "branch": (1,),
    "rm-branch": (1,),
    "reset": (1,),
    "merge": (1,),
}

DATE_FORMAT = "%a %b %d %H:%M:%S %Y %z"


def format_commit(commit: Commit) -> str:
    lines = ["===", f"commit {commit.id}"]
    if commit.is_merge:
        lines.append("Merge: " + " ".join(p[:7] for p in commit.parents))
    date = datetime.fromtimestamp(commit.timestamp).astimezone()
    lines.append(f"Date: {date.strftime(DATE_FORMAT)}")
    lines.append(commit.message)
    lines.append("")
    return "\n".join(lines)


def format_status(report: StatusReport) -> str:
    branches = [
        f"*{name}" if name == report.current_branch else name
        for name in report.branches
    ]
    sections = [
        ("Branches", branches),
        ("Staged Files", report.staged),
        ("Removed Files", report.removed),
        ("Modifications Not Staged For Commit", report.modified),
        ("Untracked Files", report.untracked),
    ]
    lines = []
    for title, entries in sections:
        lines.append(f"=== {title} ===")
        lines.extend(entries)
        lines.append("")
    return "\n".join(lines)


def check_operands(command: str, operands: list[str]) -> None:
    if command not in COMMANDS:
        raise UsageError("No command with that name exists.")
    if len(operands) not in COMMANDS[command]:
        raise UsageError("Incorrect operands.")


def checkout(repo: Repository, operands: list[str]) -> None:
    if len(operands) == 1:
        repo.checkout_branch(operands[0])
    elif len(operands) == 2 and operands[0] == "--":
        repo.checkout_file(operands[1])
    elif len(operands) == 3 and operands[1] == "--":
        repo.checkout_file(operands[2], commit_id=operands[0])
    else:
        raise UsageError("Incorrect operands.")


def dispatch(repo: Repository, command: str, operands: list[str]) -> None:
    if command == "add":
        repo.add(operands[0])
    elif command == "commit":
        repo.commit(operands[0])
    elif command == "rm":
        repo.rm(operands[0])
    elif command == "log":
        for commit in repo.log():
            print(format_commit(commit))
    elif command == "global-log":
        for commit in repo.global_log():
            print(format_commit(commit))
    elif command == "find":
        for commit_id in repo.find(operands[0]):
            print(commit_id)
    elif command == "status":
        print(format_status(repo.status()))
    elif command == "checkout":
        checkout(repo, operands)
    elif command == "branch":
        repo.branch(operands[0])
    elif command == "rm-branch":
        repo.rm_branch(operands[0])
    elif command == "reset":
        repo.reset(operands[0])
    elif command == "merge":
        result = repo.merge(operands[0])
        if result.strategy == "ancestor":
            print("Given branch is an ancestor of the current branch.")
        elif result.strategy == "fast_forward":
            print("Current branch fast-forwarded.")
        elif result.has_conflicts:
            print("Encountered a merge conflict.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapvcs", description="A small local version-control system"
    )
    parser.add_argument(
        "-C",
        "--repo-dir",
        default=".",
        help="Working tree of the repository (default: current directory)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        metavar="COMMAND [OPERAND ...]",
        help="One of: " + ", ".join(COMMANDS),
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if not args.command:
            raise UsageError("Please enter a command.")
        command, operands = args.command[0], args.command[1:]
        check_operands(command, operands)

        if command == "init":
            init_repository(args.repo_dir)
        else:
            with open_repository(args.repo_dir) as repo:
                dispatch(repo, command, operands)
    except VCSError as e:
        logger.debug("%s failed: %s", type(e).__name__, e)
        print(e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
