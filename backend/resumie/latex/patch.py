"""Marker-delimited patches on LaTeX source.

Injected fragments are fenced by comment markers so they can be found and
replaced on the next application instead of piling up. Inserting
``"\\n" + content`` at the end of an anchor line and then removing the marked
fragment (with its leading newline) gives back the input text byte for byte.
An insert in the middle of a line also adds the newline that closes the
fragment; that newline stays after removal, so a second insert lands in the
same place.
"""

import re


def find_marked_block(tex: str, start_marker: str, end_marker: str) -> tuple[int, int] | None:
    """Return (start, end) offsets of the first well-formed marked block."""
    start = tex.find(start_marker)
    if start == -1:
        return None
    end = tex.find(end_marker, start)
    if end == -1:
        return None
    return start, end + len(end_marker)


def remove_marked_block(tex: str, start_marker: str, end_marker: str) -> str:
    """Remove a marked block, including the newline that precedes it."""
    span = find_marked_block(tex, start_marker, end_marker)
    if span is None:
        return tex
    start, end = span
    if start > 0 and tex[start - 1] == "\n":
        start -= 1
    return tex[:start] + tex[end:]


def remove_marked_line(tex: str, body_pattern: str, marker: str) -> str:
    """Remove every ``<body_pattern> <marker>`` line inserted by insert_after_line."""
    pattern = re.compile(rf"\n?{body_pattern}[ \t]*{re.escape(marker)}[^\n]*")
    return pattern.sub("", tex)


def remove_commands(tex: str, command_patterns: list[str]) -> str:
    """Delete every command matching any pattern.

    Only the command itself goes; other commands sharing its line stay. A line
    holding nothing but matched commands is removed with its newline.
    """
    for command in command_patterns:
        tex = re.sub(rf"^[ \t]*(?:(?:{command})[ \t]*)+(?:\n|\Z)", "", tex, flags=re.MULTILINE)
        tex = re.sub(command, "", tex)
    return tex


def insert_after_line(tex: str, anchor: re.Pattern, content: str) -> str | None:
    """Insert ``content`` on its own line right after the line holding ``anchor``.

    When more source follows the anchor on the same line, ``content`` goes
    right after the anchor and is closed by a newline of its own.

    Returns None when the anchor is missing so callers can log and skip.
    """
    m = anchor.search(tex)
    if not m:
        return None

    end_of_line = tex.find("\n", m.end())
    if end_of_line == -1:
        if tex[m.end():].strip():
            return tex[:m.end()] + "\n" + content + "\n" + tex[m.end():]
        end_of_line = len(tex)
    return tex[:end_of_line] + "\n" + content + tex[end_of_line:]
