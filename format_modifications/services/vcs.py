"""
Version control sources - repository root, file status and baseline content

Two interchangeable backends live behind ``VersionControlSource``: git, which
compares against the index, and Mercurial, which compares against the working
copy parent. Callers pick one by key through ``get_vcs_client``.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from format_modifications.models.vcs import FileInfo

from .commands import CommandResult, CommandSpec, run_command

logger = logging.getLogger(__name__)

CommandRunner = Callable[[CommandSpec], CommandResult]


class VCSError(Exception):
    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message)
        self.code = code


class NotARepository(VCSError):
    def __init__(self, message: str):
        super().__init__(message, code="NOT_A_REPOSITORY")


class QueryFailed(VCSError):
    def __init__(self, message: str):
        super().__init__(message, code="QUERY_FAILED")


class ComparisonUnavailable(VCSError):
    def __init__(self, message: str):
        super().__init__(message, code="COMPARISON_UNAVAILABLE")


class UnsupportedVCS(VCSError, KeyError):
    def __init__(self, name: str):
        super().__init__(f"VCS {name} isn't supported", code="UNSUPPORTED_VCS")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class VersionControlSource(ABC):
    """Capability interface shared by every version control backend"""

    executable: str = ""

    def __init__(self, runner: CommandRunner = run_command, timeout_s: float | None = None):
        self.runner = runner
        self.timeout_s = timeout_s
        self.repository_root: str | None = None

    def _run(self, args: list[str], cwd: str | None = None) -> CommandResult:
        return self.runner(
            CommandSpec(
                command=self.executable,
                args=args,
                cwd=cwd or self.repository_root,
                timeout_s=self.timeout_s,
            )
        )

    @abstractmethod
    def init(self, path: str) -> None:
        """Resolve and remember the repository root for ``path``"""

    def relativize(self, path: str) -> str:
        """Path of ``path`` relative to the repository root, with forward slashes"""
        if self.repository_root is None:
            raise RuntimeError("init() must be called before relativize()")
        absolute = os.path.realpath(os.path.abspath(path))
        root = os.path.realpath(self.repository_root)
        return Path(os.path.relpath(absolute, root)).as_posix()

    @abstractmethod
    def file_info(self, path: str) -> FileInfo:
        """Tracking and conflict state of ``path``"""

    @abstractmethod
    def comparison_lines(self, path: str) -> list[str]:
        """Baseline content of ``path`` as a list of lines"""

    def _resolve_root(self, path: str, args: list[str], message: str) -> None:
        cwd = os.path.dirname(os.path.abspath(path))
        result = self._run(args, cwd=cwd)
        if not result.ok:
            raise NotARepository(message)
        self.repository_root = "\n".join(result.stdout)
        logger.debug("Repository root for %s is %s", path, self.repository_root)


class GitClient(VersionControlSource):
    """git backend; the baseline is the version in the index"""

    executable = "git"

    def init(self, path: str) -> None:
        self._resolve_root(path, ["rev-parse", "--show-toplevel"], "not inside git repository")

    def file_info(self, path: str) -> FileInfo:
        result = self._run(
            [
                "-c", "core.quotepath=off",
                "ls-files",
                "--stage",
                "--others",
                "--exclude-standard",
                "--eol",
                self.relativize(path),
            ]
        )
        if not result.ok:
            raise QueryFailed(f"failed to get file information for {path}")

        file_info = FileInfo()
        for line in result.stdout:
            parts = line.split("\t")
            file_info.is_tracked = len(parts) > 2

            if file_info.is_tracked:
                # "<mode> <object> <stage>\ti/<eol> w/<eol> attr/<attr>\t<path>"
                eol = parts[1].split()
                file_info.i_crlf = len(eol) > 0 and eol[0] == "i/crlf"
                file_info.w_crlf = len(eol) > 1 and eol[1] == "w/crlf"
                file_info.relpath = parts[2]
                attrs = parts[0].split()
                stage = int(attrs[2])
                if stage <= 1:
                    file_info.mode_bits = attrs[0]
                    file_info.object_name = attrs[1]
                else:
                    # stages 2 and 3 only exist while a merge is unresolved
                    file_info.has_conflicts = True
            else:
                file_info.relpath = parts[-1]

        return file_info

    def comparison_lines(self, path: str) -> list[str]:
        result = self._run(
            ["--no-pager", "--literal-pathspecs", "show", ":0:./" + self.relativize(path)]
        )
        if not result.ok:
            raise ComparisonUnavailable("exit code from git show is non-zero")
        return result.stdout


class HgClient(VersionControlSource):
    """Mercurial backend; the baseline is the working copy parent"""

    executable = "hg"

    def init(self, path: str) -> None:
        self._resolve_root(path, ["root"], "not inside a hg repository")

    def conflicts(self, path: str) -> set[str]:
        """Relative paths that ``hg resolve`` still lists as unresolved"""
        result = self._run(["resolve", "-l", "--", self.relativize(path)])
        if not result.ok:
            raise QueryFailed(f"failed to get conflicts for {path}")

        unresolved = set()
        for line in result.stdout:
            if not line or line.lstrip(" ").startswith("#"):
                continue
            if line.startswith("U"):
                unresolved.add(line[2:])
        return unresolved

    def file_info(self, path: str) -> FileInfo:
        conflicts = self.conflicts(path)

        result = self._run(
            ["status", "-cmau", "--no-copies", "--", self.relativize(path)]
        )
        if not result.ok:
            raise QueryFailed(f"failed to get file information for {path}")

        # TODO: read the real mode and EOL style from the manifest
        file_info = FileInfo(mode_bits="100644", i_crlf=True, w_crlf=True)
        for line in result.stdout:
            if not line or line.lstrip(" ").startswith("#"):
                continue
            status = line[0]
            file_info.relpath = line[2:]
            file_info.object_name = file_info.relpath
            file_info.is_tracked = status not in ("A", "?")
            file_info.has_conflicts = file_info.relpath in conflicts
            break

        return file_info

    def comparison_lines(self, path: str) -> list[str]:
        result = self._run(["cat", "--", self.relativize(path)])
        if not result.ok:
            raise ComparisonUnavailable("exit code from hg cat is non-zero")
        return result.stdout


VCS_CLIENTS: dict[str, type[VersionControlSource]] = {
    "git": GitClient,
    "hg": HgClient,
}


def get_vcs_client(
    name: str,
    runner: CommandRunner = run_command,
    timeout_s: float | None = None,
) -> VersionControlSource:
    """Create a fresh client for the VCS registered under ``name``"""
    try:
        client_cls = VCS_CLIENTS[name]
    except KeyError:
        raise UnsupportedVCS(name) from None
    return client_cls(runner=runner, timeout_s=timeout_s)
