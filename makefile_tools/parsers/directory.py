"""
Working directory tracking across a trace.

Shell idioms (cd, cd -, pushd, popd) and make's print-directory
announcements move the directory that relative paths on later lines are
resolved against.
"""

import re
import posixpath
from typing import List

from loguru import logger

from ..utils.paths import make_full_path


class DirectoryTracker:
    """Stack of working directories; the last entry is the current one."""

    def __init__(self, workspace_root: str, pathmod=posixpath):
        self.workspace_root = workspace_root
        self.pathmod = pathmod
        self.history: List[str] = [workspace_root]
        self.cd_back_pattern = re.compile(r'^cd\s+-$')
        self.cd_pattern = re.compile(r'^cd\s+(.+)$')
        self.pushd_pattern = re.compile(r'^pushd\s+(.+)$')
        self.popd_pattern = re.compile(r'^popd\b')
        self.entering_pattern = re.compile(r'Entering directory [\'`"](.*)[\'`"]')

    @property
    def current(self) -> str:
        return self.history[-1]

    def reset(self) -> None:
        self.history = [self.workspace_root]

    def apply(self, line: str) -> List[str]:
        """Update the history for one trace line and return it."""
        self.history = self.directory_after_command(line, self.history)
        return self.history

    def directory_after_command(self, line: str, history: List[str]) -> List[str]:
        line = line.strip()
        history = list(history)
        last = history[-1] if history else self.workspace_root

        if self.cd_back_pattern.match(line):
            previous = history[-2] if len(history) > 1 else last
            history = history[:-2] + [last, previous]
            logger.debug(f"cd -: leaving {last}, entering {previous}")
        elif self.popd_pattern.match(line) or 'Leaving directory' in line:
            if len(history) > 1:
                history.pop()
            logger.debug(f"popd: leaving {last}, entering {history[-1]}")
        elif match := self.cd_pattern.match(line):
            new_dir = make_full_path(match.group(1), last, self.pathmod)
            # cd - must always have one previous directory to return to
            history = [last, new_dir]
            logger.debug(f"cd: entering {new_dir}")
        elif match := self.pushd_pattern.match(line):
            new_dir = make_full_path(match.group(1), last, self.pathmod)
            history.append(new_dir)
            logger.debug(f"pushd: entering {new_dir}")
        elif 'Entering directory' in line:
            if match := self.entering_pattern.search(line):
                new_dir = make_full_path(match.group(1), last, self.pathmod)
            else:
                logger.warning(f"Could not parse directory from: {line}")
                new_dir = last
            history.append(new_dir)
            logger.debug(f"make: entering {new_dir}")

        return history
