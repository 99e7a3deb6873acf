from pathlib import Path

import pytest

from snapvcs.cli import build_parser, format_status, main
from snapvcs.repository import StatusReport


@pytest.fixture
def run(tmp_path: Path, capsys):
    """Run one invocation in tmp_path and return (exit code, stdout)."""

    def _run(*argv: str) -> tuple[int, str]:
        code = main(["-C", str(tmp_path), *argv])
        return code, capsys.readouterr().out

    return _run


@pytest.fixture
def initialized(run):
    assert run("init") == (0, "")
    return run


def test_parser_keeps_double_dash():
    args = build_parser().parse_args(["-C", "work", "checkout", "abc123", "--", "f.txt"])
    assert args.repo_dir == "work"
    assert args.command == ["checkout", "abc123", "--", "f.txt"]


@pytest.mark.parametrize(
    "argv, message",
    [
        ((), "Please enter a command."),
        (("push",), "No command with that name exists."),
        (("add",), "Incorrect operands."),
        (("log", "extra"), "Incorrect operands."),
        (("checkout", "a", "b", "c", "d"), "Incorrect operands."),
        (("status",), "Not in an initialized snapvcs directory."),
    ],
)
def test_usage_errors(run, argv, message):
    code, out = run(*argv)
    assert code == 1
    assert out == message + "\n"


def test_init_twice(initialized):
    code, out = initialized("init")
    assert code == 1
    assert "already exists" in out


def test_checkout_file_forms(initialized, tmp_path: Path):
    run = initialized
    (tmp_path / "f.txt").write_bytes(b"one")
    run("add", "f.txt")
    run("commit", "first")
    (tmp_path / "f.txt").write_bytes(b"two")
    run("add", "f.txt")
    run("commit", "second")

    code, out = run("find", "first")
    assert code == 0
    first_id = out.strip()
    assert len(first_id) == 40

    assert run("checkout", first_id[:6], "--", "f.txt") == (0, "")
    assert (tmp_path / "f.txt").read_bytes() == b"one"

    assert run("checkout", "--", "f.txt") == (0, "")
    assert (tmp_path / "f.txt").read_bytes() == b"two"

    assert run("checkout", first_id, "++", "f.txt") == (1, "Incorrect operands.\n")


def test_log(initialized, tmp_path: Path):
    run = initialized
    (tmp_path / "f.txt").write_bytes(b"x")
    run("add", "f.txt")
    run("commit", "add f")

    code, out = run("log")
    assert code == 0
    entries = out.split("===\n")[1:]
    assert len(entries) == 2
    assert entries[0].splitlines()[0].startswith("commit ")
    assert entries[0].splitlines()[1].startswith("Date: ")
    assert entries[0].splitlines()[2] == "add f"
    assert entries[1].splitlines()[2] == "initial commit"


def test_status(initialized, tmp_path: Path):
    run = initialized
    run("branch", "dev")
    (tmp_path / "new.txt").write_bytes(b"n")
    (tmp_path / "stray.txt").write_bytes(b"s")
    run("add", "new.txt")

    code, out = run("status")
    assert code == 0
    assert out == (
        "=== Branches ===\n"
        "dev\n"
        "*master\n"
        "\n"
        "=== Staged Files ===\n"
        "new.txt\n"
        "\n"
        "=== Removed Files ===\n"
        "\n"
        "=== Modifications Not Staged For Commit ===\n"
        "\n"
        "=== Untracked Files ===\n"
        "stray.txt\n"
        "\n"
    )


def test_format_status_marks_current_branch():
    text = format_status(StatusReport(current_branch="b", branches=["a", "b"]))
    assert text.splitlines()[:3] == ["=== Branches ===", "a", "*b"]


def test_merge_conflict(initialized, tmp_path: Path):
    run = initialized
    (tmp_path / "f.txt").write_bytes(b"base\n")
    run("add", "f.txt")
    run("commit", "base")
    run("branch", "dev")

    (tmp_path / "f.txt").write_bytes(b"master\n")
    run("add", "f.txt")
    run("commit", "on master")

    run("checkout", "dev")
    (tmp_path / "f.txt").write_bytes(b"dev\n")
    run("add", "f.txt")
    run("commit", "on dev")
    run("checkout", "master")

    assert run("merge", "dev") == (0, "Encountered a merge conflict.\n")
    assert (tmp_path / "f.txt").read_bytes() == (
        b"<<<<<<< HEAD\nmaster\n=======\ndev\n>>>>>>>\n"
    )

    code, out = run("log")
    assert "Merged dev into master." in out
    assert "\nMerge: " in out

    assert run("merge", "dev") == (
        0,
        "Given branch is an ancestor of the current branch.\n",
    )


def test_merge_fast_forward(initialized, tmp_path: Path):
    run = initialized
    run("branch", "dev")
    run("checkout", "dev")
    (tmp_path / "f.txt").write_bytes(b"x")
    run("add", "f.txt")
    run("commit", "on dev")
    run("checkout", "master")
    assert not (tmp_path / "f.txt").exists()

    assert run("merge", "dev") == (0, "Current branch fast-forwarded.\n")
    assert (tmp_path / "f.txt").read_bytes() == b"x"


def test_errors_leave_state_alone(initialized, tmp_path: Path):
    run = initialized
    assert run("commit", "nothing") == (1, "No changes added to the commit.\n")
    assert run("rm-branch", "master") == (1, "Cannot remove the current branch.\n")
    assert run("reset", "deadbeef") == (1, "No commit with that id exists.\n")
    assert run("find", "nope") == (1, "Found no commit with that message.\n")
    assert run("rm", "ghost.txt") == (1, "No reason to remove the file.\n")


def test_init_missing_directory(tmp_path: Path, capsys):
    missing = tmp_path / "missing"
    assert main(["-C", str(missing), "init"]) == 1
    assert capsys.readouterr().out == f"Directory {missing} does not exist.\n"


def test_nested_paths_are_not_tracked(initialized, tmp_path: Path):
    run = initialized
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "f.txt").write_bytes(b"nested")
    assert run("add", "sub/f.txt") == (1, "File does not exist.\n")
    assert run("commit", "nested") == (1, "No changes added to the commit.\n")
