"""Turn the narrow LaTeX dialect our generator emits into plain prose.

This is a fixed sequence of regex substitutions, not a TeX parser. Order
matters: later rules assume the earlier ones already fired.

Known limitations (kept on purpose, generated documents depend on them):
  - A generic command only swallows ONE brace group, so ``\\cmd{a}{b}``
    leaves ``b`` behind as bare text once braces are stripped.
  - ``%`` starts a comment even when escaped, so ``50\\%`` loses its tail.
"""

import re

_COMMENT_RE = re.compile(r"%.*$", re.MULTILINE)
# A `\%` escape loses its `%` to the comment rule; drop the backslash it leaves behind.
_ORPHAN_BACKSLASH_RE = re.compile(r"(?<!\\)\\(?=[ \t]*$)", re.MULTILINE)
_FORMATTING_RES = [
    re.compile(rf"\\{name}\{{([^}}]*)\}}")
    for name in ("textbf", "textit", "underline", "emph", "textsc")
]
_HREF_RE = re.compile(r"\\href\{[^}]*\}\{([^}]*)\}")
_HSPACE_RE = re.compile(r"\\hspace\{[^}]*\}")
_VSPACE_RE = re.compile(r"\\vspace\{[^}]*\}")
_LINEBREAK_RE = re.compile(r"\\\\(?:\[[^\]]*\])?")
_NEWLINE_CMD_RE = re.compile(r"\\newline")
_GENERIC_CMD_RE = re.compile(r"\\[a-zA-Z]+\*?(?:\[[^\]]*\])?(?:\{[^}]*\})?")
_BRACES_RE = re.compile(r"[{}]")
_INLINE_WS_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")

# Export-only extras
_PIPE_SEPARATOR_RE = re.compile(r"\\,?\|\\,?")
_THIN_SPACE_RE = re.compile(r"\\,")
_LINE_INDENT_RE = re.compile(r"\n[ \t]+")


def _unwrap(text: str) -> str:
    """Steps shared by both strippers: comments through spacing commands."""
    text = _COMMENT_RE.sub("", text)
    text = _ORPHAN_BACKSLASH_RE.sub("", text)
    for pattern in _FORMATTING_RES:
        text = pattern.sub(r"\1", text)
    text = _HREF_RE.sub(r"\1", text)
    text = _HSPACE_RE.sub(" ", text)
    text = _VSPACE_RE.sub("\n", text)
    text = _LINEBREAK_RE.sub("\n", text)
    return _NEWLINE_CMD_RE.sub("\n", text)


def strip_latex_commands(text: str) -> str:
    """Strip LaTeX syntax and return prose with blank-line runs collapsed.

    >>> strip_latex_commands(r"\\textbf{Hi} \\textit{there}")
    'Hi there'
    """
    text = _unwrap(text)
    text = _GENERIC_CMD_RE.sub("", text)
    text = _BRACES_RE.sub("", text)
    text = _INLINE_WS_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n", text)
    return text.strip()


def strip_latex_for_export(text: str) -> str:
    """Variant used by the plain-text and DOCX exporters.

    Header pipe separators become `` | ``, thin spaces become spaces, and
    blank lines are kept so paragraphs can still be split on them.
    """
    text = _unwrap(text)
    text = _PIPE_SEPARATOR_RE.sub(" | ", text)
    text = _THIN_SPACE_RE.sub(" ", text)
    text = _GENERIC_CMD_RE.sub("", text)
    text = _BRACES_RE.sub("", text)
    text = _INLINE_WS_RE.sub(" ", text)
    text = _LINE_INDENT_RE.sub("\n", text)
    return text.strip()
