"""Shared fixtures for the format-modifications tests."""

import re
import shutil
import subprocess
import sys
import textwrap

import pytest

from format_modifications.services.attachments import AttachmentRegistry
from format_modifications.services.buffers import BufferStore
from format_modifications.services.commands import CommandResult
from format_modifications.services.config_manager import ConfigManager

FORMATTER_SCRIPT = textwrap.dedent(
    '''
    import re
    import sys

    lines = sys.stdin.read().split("\\n")
    if lines and lines[-1] == "":
        lines.pop()
    start = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    end = int(sys.argv[2]) if len(sys.argv) > 2 else len(lines)

    out = lines[: start - 1]
    for line in lines[start - 1 : end]:
        indent = line[: len(line) - len(line.lstrip())]
        for part in line.strip().split(";"):
            out.append(indent + re.sub(r"\\s*=\\s*", " = ", part.strip()))
    out.extend(lines[end:])
    sys.stdout.write("\\n".join(out) + ("\\n" if out else ""))
    '''
)


def split_statements(line):
    """One statement per line, spaces around '='."""
    indent = line[: len(line) - len(line.lstrip())]
    return [indent + re.sub(r"\s*=\s*", " = ", part.strip()) for part in line.strip().split(";")]


class ListBuffer:
    """In-memory buffer plus a range formatter that rewrites it."""

    def __init__(self, lines, rule=lambda line: [line]):
        self.lines = list(lines)
        self.rule = rule
        self.calls = []

    def get_lines(self):
        return list(self.lines)

    def __call__(self, format_range=None):
        self.calls.append(None if format_range is None else (format_range.start, format_range.end))
        if format_range is None:
            start, end = 1, len(self.lines)
        else:
            start, end = format_range.start_line, format_range.end_line
        replacement = []
        for line in self.lines[start - 1 : end]:
            replacement.extend(self.rule(line))
        self.lines[start - 1 : end] = replacement


class FakeRunner:
    """Answers external commands by the first matching subcommand."""

    def __init__(self, responses):
        self.responses = responses
        self.specs = []

    def __call__(self, spec):
        self.specs.append(spec)
        for key, result in self.responses.items():
            if key in spec.args:
                return result
        return CommandResult(exitcode=1, stderr=["unexpected command"])


def ok(*lines):
    return CommandResult(exitcode=0, stdout=list(lines))


def failed(code=1):
    return CommandResult(exitcode=code, stderr=["fatal"])


@pytest.fixture
def formatter_script(tmp_path):
    """Range-capable formatter: splits ';' statements, spaces around '='."""
    script = tmp_path / "fmt.py"
    script.write_text(FORMATTER_SCRIPT)
    return script


@pytest.fixture
def formatter_command(formatter_script):
    return {
        "command": [sys.executable, str(formatter_script)],
        "range_args": ["{start_line}", "{end_line}"],
        "file_args": [],
    }


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Fresh config directory and singletons for every test."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("FORMAT_MODIFICATIONS_CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(ConfigManager, "_instance", None)
    monkeypatch.setattr(BufferStore, "_instance", None)
    monkeypatch.setattr(AttachmentRegistry, "_instance", None)
    return config_dir


class GitRepo:
    def __init__(self, root):
        self.root = root

    def git(self, *args):
        return subprocess.run(
            ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
            cwd=self.root,
            check=True,
            capture_output=True,
            text=True,
        )

    def commit(self, name, content):
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        self.git("add", name)
        self.git("commit", "-q", "-m", f"add {name}")
        return path


@pytest.fixture
def git_repo(tmp_path):
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    root = tmp_path / "repo"
    root.mkdir()
    repo = GitRepo(root)
    repo.git("init", "-q")
    return repo
