"""
Command line switch extraction.

All extractors work on the raw argument string of a tool invocation.
A switch is only recognized at the start of the string or after
whitespace so that path fragments such as ``/usr/include/-Dfoo`` are not
mistaken for switches. Switches may use ``-``, ``/`` or ``--`` as prefix.
"""

import re
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence, Tuple

_PREFIX = r"(?:/|-|--)"
_SEPARATOR = r"(?::|=|\s*)"
_VALUE = r'(?P<value>".*?"|[^\'\s]+)'


def _clean(value: str) -> str:
    return value.strip().replace('"', "")


def _alternatives(names: Sequence[str]) -> str:
    return "|".join(re.escape(name) for name in names)


@lru_cache(maxsize=128)
def _valued_pattern(names: Tuple[str, ...]) -> re.Pattern:
    return re.compile(
        r"(?:^|\s+)'?" + _PREFIX + "(?:" + _alternatives(names) + ")"
        + _SEPARATOR + _VALUE + "'?"
    )


@lru_cache(maxsize=64)
def _ordered_pattern(simple: Tuple[str, ...], valued: Tuple[str, ...]) -> re.Pattern:
    branches = []
    if valued:
        branches.append(
            _PREFIX + "(?:" + _alternatives(valued) + ")" + _SEPARATOR + _VALUE
        )
    if simple:
        branches.append(
            _PREFIX + "(?P<simple>" + _alternatives(simple) + r")(?=[\s']|$)"
        )
    return re.compile(r"(?:^|\s+)'?(?:" + "|".join(branches) + ")'?")


@lru_cache(maxsize=64)
def _presence_pattern(names: Tuple[str, ...]) -> re.Pattern:
    return re.compile(r"(?:^|\s+)" + _PREFIX + "(?:" + _alternatives(names) + r")(?:\s+|$)")


@lru_cache(maxsize=16)
def _files_pattern(extensions: Tuple[str, ...]) -> re.Pattern:
    branches = []
    for ext in extensions:
        escaped = re.escape(ext)
        branches.append(r'".[^"]*?\.' + escaped + '"')
        branches.append(r"\S+\." + escaped)
    return re.compile("(" + "|".join(branches) + r")(?=\s|$)")


class SwitchExtractor(Protocol):
    """Interface for the switch families used by the trace extractors."""

    def repeatable(self, args: str, switch: str) -> List[str]: ...

    def single(self, args: str, switches: Sequence[str]) -> Optional[str]: ...

    def ordered(
        self, args: str, simple: Sequence[str], valued: Sequence[str]
    ) -> List[str]: ...

    def is_present(self, args: str, switches: Sequence[str]) -> bool: ...

    def files_by_extension(self, args: str, extensions: Sequence[str]) -> List[str]: ...


class RegexSwitchExtractor:
    """Regular expression implementation of :class:`SwitchExtractor`."""

    def repeatable(self, args: str, switch: str) -> List[str]:
        """Values of every occurrence of ``switch``, in order (``-I``, ``-D``)."""
        return [
            _clean(m.group("value"))
            for m in _valued_pattern((switch,)).finditer(args)
            if m.group("value")
        ]

    def single(self, args: str, switches: Sequence[str]) -> Optional[str]:
        """Value of the last occurrence of any spelling in ``switches``."""
        values = [
            _clean(m.group("value"))
            for m in _valued_pattern(tuple(switches)).finditer(args)
            if m.group("value")
        ]
        return values[-1] if values else None

    def ordered(
        self, args: str, simple: Sequence[str], valued: Sequence[str]
    ) -> List[str]:
        """
        Interleaved values of valued switches and names of simple switches.

        ``-m32 -march=x86-64`` with simple ``m32`` and valued ``march``
        yields ``["m32", "x86-64"]``, so a caller can tell which one wins.
        """
        results = []
        for m in _ordered_pattern(tuple(simple), tuple(valued)).finditer(args):
            groups = m.groupdict()
            value = groups.get("value") or groups.get("simple")
            if value:
                results.append(_clean(value))
        return results

    def is_present(self, args: str, switches: Sequence[str]) -> bool:
        return _presence_pattern(tuple(switches)).search(args) is not None

    def files_by_extension(self, args: str, extensions: Sequence[str]) -> List[str]:
        return [_clean(m.group(1)) for m in _files_pattern(tuple(extensions)).finditer(args)]


DEFAULT_EXTRACTOR = RegexSwitchExtractor()
