# config.py - Reading and writing Git config files
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

"""Reading and writing Git configuration files.

Only the subset of the format used by repository and user configuration is
supported: sections with optional quoted subsections, ``key = value``
settings, comments, quoted values with escapes and line continuations.
``include`` directives are not followed.
"""

__all__ = [
    "Config",
    "ConfigDict",
    "ConfigFile",
    "StackedConfig",
    "get_xdg_config_home_path",
]

import logging
import os
import sys
from collections.abc import Iterator
from typing import IO, overload

from .file import GitFile, _GitFile

logger = logging.getLogger(__name__)

Name = bytes
NameLike = bytes | str
Section = tuple[bytes, ...]
SectionLike = bytes | str | tuple[bytes | str, ...]
Value = bytes
ValueLike = bytes | str


def _lower_section(section: Section) -> Section:
    # Section names are case-insensitive, subsection names are not.
    return (section[0].lower(), *section[1:])


class Config:
    """A Git configuration."""

    def get(self, section: SectionLike, name: NameLike) -> Value:
        """Retrieve the contents of a configuration setting.

        Args:
          section: Tuple with section name and optional subsection name
          name: Variable name
        Returns:
          Contents of the setting
        Raises:
          KeyError: if the value is not set
        """
        raise NotImplementedError(self.get)

    @overload
    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool
    ) -> bool: ...

    @overload
    def get_boolean(self, section: SectionLike, name: NameLike) -> bool | None: ...

    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool | None = None
    ) -> bool | None:
        """Retrieve a configuration setting as boolean.

        Args:
          section: Tuple with section name and optional subsection name
          name: Name of the setting
          default: Default value if setting is not found

        Returns:
          Contents of the setting
        Raises:
          ValueError: if the value is set but is not a boolean
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        if value.lower() in (b"true", b"yes", b"on", b"1"):
            return True
        elif value.lower() in (b"false", b"no", b"off", b"0", b""):
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    def get_int(
        self, section: SectionLike, name: NameLike, default: int | None = None
    ) -> int | None:
        """Retrieve a configuration setting as an integer.

        Raises:
          ValueError: if the value is set but is not an integer
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        return int(value)

    def set(
        self, section: SectionLike, name: NameLike, value: ValueLike | bool
    ) -> None:
        """Set a configuration value.

        Args:
          section: Tuple with section name and optional subsection name
          name: Name of the configuration value
          value: value of the setting
        """
        raise NotImplementedError(self.set)

    def sections(self) -> Iterator[Section]:
        """Iterate over the sections.

        Returns: Iterator over section tuples
        """
        raise NotImplementedError(self.sections)

    def has_section(self, name: Section) -> bool:
        """Check if a specified section exists."""
        return name in self.sections()


class ConfigDict(Config):
    """Git configuration stored in a dictionary.

    Sections map to an ordered list of ``(name, value)`` pairs; lookups are
    case-insensitive on the section and variable names, and the last value
    set for a name wins.
    """

    def __init__(self, encoding: str | None = None) -> None:
        if encoding is None:
            encoding = sys.getdefaultencoding()
        self.encoding = encoding
        self._values: dict[Section, list[tuple[Name, Value]]] = {}
        self._names: dict[Section, Section] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, self.__class__) and other._values == self._values

    def _check_section_and_name(
        self, section: SectionLike, name: NameLike
    ) -> tuple[Section, Name]:
        if not isinstance(section, tuple):
            section = (section,)
        checked_section = tuple(
            s if isinstance(s, bytes) else s.encode(self.encoding) for s in section
        )
        if not isinstance(name, bytes):
            name = name.encode(self.encoding)
        return checked_section, name

    def _section_values(self, section: Section) -> list[tuple[Name, Value]]:
        return self._values[self._names[_lower_section(section)]]

    def _add_section(self, section: Section) -> list[tuple[Name, Value]]:
        key = _lower_section(section)
        try:
            return self._values[self._names[key]]
        except KeyError:
            self._names[key] = section
            return self._values.setdefault(section, [])

    def get(self, section: SectionLike, name: NameLike) -> Value:
        section, name = self._check_section_and_name(section, name)
        lower = name.lower()
        for k, v in reversed(self._section_values(section)):
            if k.lower() == lower:
                return v
        raise KeyError(name)

    def set(
        self, section: SectionLike, name: NameLike, value: ValueLike | bool
    ) -> None:
        section, name = self._check_section_and_name(section, name)
        if isinstance(value, bool):
            value = b"true" if value else b"false"
        if not isinstance(value, bytes):
            value = value.encode(self.encoding)
        values = self._add_section(section)
        lower = name.lower()
        values[:] = [(k, v) for (k, v) in values if k.lower() != lower]
        values.append((name, value))

    def items(self, section: SectionLike) -> Iterator[tuple[Name, Value]]:
        """Iterate over the (name, value) pairs in a section."""
        section_bytes, _ = self._check_section_and_name(section, b"")
        try:
            return iter(list(self._section_values(section_bytes)))
        except KeyError:
            return iter([])

    def sections(self) -> Iterator[Section]:
        return iter(list(self._values.keys()))


def _format_string(value: bytes) -> bytes:
    if (
        value.startswith((b" ", b"\t"))
        or value.endswith((b" ", b"\t"))
        or b"#" in value
        or b";" in value
    ):
        return b'"' + _escape_value(value) + b'"'
    return _escape_value(value)


_ESCAPE_TABLE = {
    ord(b"\\"): ord(b"\\"),
    ord(b'"'): ord(b'"'),
    ord(b"n"): ord(b"\n"),
    ord(b"t"): ord(b"\t"),
    ord(b"b"): ord(b"\b"),
}
_COMMENT_CHARS = (ord(b"#"), ord(b";"))
_WHITESPACE_CHARS = (ord(b"\t"), ord(b" "))


def _parse_string(value: bytes) -> bytes:
    value_array = bytearray(value.strip())
    ret = bytearray()
    whitespace = bytearray()
    in_quotes = False
    i = 0
    while i < len(value_array):
        c = value_array[i]
        if c == ord(b"\\"):
            i += 1
            if i >= len(value_array):
                raise ValueError("escape character at end of value")
            try:
                v = _ESCAPE_TABLE[value_array[i]]
            except KeyError as exc:
                raise ValueError(
                    f"escape character followed by unknown character "
                    f"{value_array[i:i + 1]!r} at {i!r} in {value!r}"
                ) from exc
            ret.extend(whitespace)
            whitespace = bytearray()
            ret.append(v)
        elif c == ord(b'"'):
            in_quotes = not in_quotes
        elif c in _COMMENT_CHARS and not in_quotes:
            # the rest of the line is a comment
            break
        elif c in _WHITESPACE_CHARS and not in_quotes:
            whitespace.append(c)
        else:
            ret.extend(whitespace)
            whitespace = bytearray()
            ret.append(c)
        i += 1

    if in_quotes:
        raise ValueError("missing end quote")

    return bytes(ret)


def _escape_value(value: bytes) -> bytes:
    value = value.replace(b"\\", b"\\\\")
    value = value.replace(b"\n", b"\\n")
    value = value.replace(b"\t", b"\\t")
    value = value.replace(b'"', b'\\"')
    return value


def _check_variable_name(name: bytes) -> bool:
    return bool(name) and all(
        name[i : i + 1].isalnum() or name[i : i + 1] == b"-" for i in range(len(name))
    )


def _check_section_name(name: bytes) -> bool:
    return bool(name) and all(
        name[i : i + 1].isalnum() or name[i : i + 1] in (b"-", b".")
        for i in range(len(name))
    )


def _strip_comments(line: bytes) -> bytes:
    string_open = False
    for i, character in enumerate(bytearray(line)):
        # Comment characters outside balanced quotes denote comment start
        if character == ord(b'"'):
            string_open = not string_open
        elif not string_open and character in _COMMENT_CHARS:
            return line[:i]
    return line


def _is_line_continuation(value: bytes) -> bool:
    content = value.rstrip(b"\r\n")
    if not content.endswith(b"\\"):
        return False
    backslashes = len(content) - len(content.rstrip(b"\\"))
    return backslashes % 2 == 1


def _parse_section_header_line(line: bytes) -> tuple[Section, bytes]:
    # Parse section header ("[bla]")
    line = _strip_comments(line).rstrip()
    in_quotes = False
    last = None
    for i in range(len(line)):
        c = line[i]
        if c == ord(b'"'):
            in_quotes = not in_quotes
        if c == ord(b"]") and not in_quotes:
            last = i
            break
    if last is None:
        raise ValueError("expected trailing ]")
    pts = line[1:last].split(b" ", 1)
    line = line[last + 1 :]
    section: Section
    if len(pts) == 2:
        if pts[1][:1] != b'"' or pts[1][-1:] != b'"':
            raise ValueError(f"Invalid subsection {pts[1]!r}")
        if not _check_section_name(pts[0]):
            raise ValueError(f"invalid section name {pts[0]!r}")
        section = (pts[0], pts[1][1:-1])
    else:
        if not _check_section_name(pts[0]):
            raise ValueError(f"invalid section name {pts[0]!r}")
        pts = pts[0].split(b".", 1)
        if len(pts) == 2:
            section = (pts[0], pts[1])
        else:
            section = (pts[0],)
    return section, line


class ConfigFile(ConfigDict):
    """A Git configuration file, like .git/config or ~/.gitconfig."""

    def __init__(self, encoding: str | None = None) -> None:
        super().__init__(encoding=encoding)
        self.path: str | None = None

    @classmethod
    def from_file(cls, f: IO[bytes]) -> "ConfigFile":
        """Read configuration from a file-like object.

        Raises:
          ValueError: if the file is not a valid configuration file
        """
        ret = cls()
        section: Section | None = None
        setting: bytes | None = None
        continuation = b""
        for lineno, line in enumerate(f.readlines()):
            if lineno == 0 and line.startswith(b"\xef\xbb\xbf"):
                line = line[3:]
            line = line.lstrip()
            if setting is None:
                if line[:1] == b"[":
                    section, line = _parse_section_header_line(line)
                    ret._add_section(section)
                if _strip_comments(line).strip() == b"":
                    continue
                if section is None:
                    raise ValueError(f"setting {line!r} without section")
                try:
                    setting, value = line.split(b"=", 1)
                except ValueError:
                    setting = line
                    value = b"true"
                setting = setting.strip()
                if not _check_variable_name(setting):
                    raise ValueError(f"invalid variable name {setting!r}")
            else:  # continuation line
                value = line
            if _is_line_continuation(value):
                continuation += value.rstrip(b"\r\n")[:-1]
                continue
            assert section is not None
            ret._add_section(section).append(
                (setting, _parse_string(continuation + value))
            )
            continuation = b""
            setting = None
        return ret

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ConfigFile":
        """Read configuration from a file on disk."""
        abs_path = os.fspath(path)
        with GitFile(abs_path, "rb") as f:
            ret = cls.from_file(f)
            ret.path = abs_path
            return ret

    def write_to_path(self, path: str | os.PathLike[str] | None = None) -> None:
        """Write configuration to a file on disk."""
        if path is None:
            if self.path is None:
                raise ValueError("No path specified and no default path available")
            path = self.path
        with GitFile(path, "wb") as f:
            self.write_to_file(f)

    def write_to_file(self, f: IO[bytes] | _GitFile) -> None:
        """Write configuration to a file-like object."""
        for section, values in self._values.items():
            try:
                section_name, subsection_name = section
            except ValueError:
                (section_name,) = section
                subsection_name = None
            if subsection_name is None:
                f.write(b"[" + section_name + b"]\n")
            else:
                f.write(b"[" + section_name + b' "' + subsection_name + b'"]\n')
            for key, value in values:
                f.write(b"\t" + key + b" = " + _format_string(value) + b"\n")


def get_xdg_config_home_path(*path_segments: str) -> str:
    """Get a path in the XDG config home directory."""
    xdg_config_home = os.environ.get(
        "XDG_CONFIG_HOME",
        os.path.expanduser("~/.config/"),
    )
    return os.path.join(xdg_config_home, *path_segments)


class StackedConfig(Config):
    """Configuration which reads from multiple config files."""

    def __init__(
        self, backends: list[ConfigFile], writable: ConfigFile | None = None
    ) -> None:
        """Initialize a StackedConfig.

        Args:
          backends: List of config files to read from (in order of precedence)
          writable: Optional config file to write changes to
        """
        self.backends = backends
        self.writable = writable

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} for {self.backends!r}>"

    @classmethod
    def default_backends(cls) -> list[ConfigFile]:
        """Retrieve the user-level configuration files that exist.

        ``$GIT_CONFIG_GLOBAL`` replaces ``~/.gitconfig`` and
        ``$XDG_CONFIG_HOME/git/config`` when set.
        """
        try:
            paths = [os.environ["GIT_CONFIG_GLOBAL"]]
        except KeyError:
            paths = [
                os.path.expanduser("~/.gitconfig"),
                get_xdg_config_home_path("git", "config"),
            ]

        backends = []
        for path in paths:
            try:
                cf = ConfigFile.from_path(path)
            except FileNotFoundError:
                continue
            logger.debug("loaded config from %s", path)
            backends.append(cf)
        return backends

    def get(self, section: SectionLike, name: NameLike) -> Value:
        if not isinstance(section, tuple):
            section = (section,)
        for backend in self.backends:
            try:
                return backend.get(section, name)
            except KeyError:
                pass
        raise KeyError(name)

    def set(
        self, section: SectionLike, name: NameLike, value: ValueLike | bool
    ) -> None:
        if self.writable is None:
            raise NotImplementedError(self.set)
        return self.writable.set(section, name, value)

    def sections(self) -> Iterator[Section]:
        seen = set()
        for backend in self.backends:
            for section in backend.sections():
                if section not in seen:
                    seen.add(section)
                    yield section
