# Renderers for decoded ESC/POS jobs
# Rich text keeps the command tags, plain text keeps only what the paper shows

import logging
import re
from typing import Iterable, List

from .codepages import Codepage
from .tokens import CommandTag, LineBreak, TextRun, Token

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_CODEPAGE = Codepage.CP1251

_BLANK_LINES = re.compile(r'\n\s*\n+')
_REPEATED_NEWLINES = re.compile(r'\n\n+')


def decode_run(run: TextRun) -> str:
    """Decode a text run, falling back to Latin-1 when the host lacks its codec"""
    try:
        return run.text()
    except LookupError as e:
        logger.warning(
            "Error decoding text with %s (bytes: %s): %s. Falling back to latin-1",
            run.codepage.codec, run.data.hex(), e,
        )
        return run.data.decode('latin-1')


def render_rich_text(tokens: Iterable[Token]) -> str:
    """
    Render tokens as text with every command shown as an <...> tag.

    Tags get a line of their own; a line break ends the current text line,
    and text following it continues on the next one.
    """
    lines: List[str] = []
    # True while the last line is text that later runs may extend
    open_text_line = False

    for token in tokens:
        if isinstance(token, TextRun):
            text = decode_run(token)
            if open_text_line:
                lines[-1] += text
            else:
                lines.append(text)
                open_text_line = True
        elif isinstance(token, LineBreak):
            lines.append('')
            open_text_line = True
        else:
            lines.append(token.render())
            open_text_line = False

    return '\n'.join(lines)


def render_plain_text_str(tokens: Iterable[Token]) -> str:
    """Text only: feed and cut commands become line breaks, other tags vanish"""
    parts: List[str] = []
    for token in tokens:
        if isinstance(token, TextRun):
            parts.append(decode_run(token))
        elif isinstance(token, LineBreak):
            parts.append('\n')
        elif isinstance(token, CommandTag) and token.feeds_paper:
            parts.append('\n')
    return _BLANK_LINES.sub('\n', ''.join(parts)).strip()


def render_plain_text(tokens: Iterable[Token],
                      output_codepage: Codepage = DEFAULT_OUTPUT_CODEPAGE) -> bytes:
    """Plain text encoded in a single output codepage; unmappable characters become '?'"""
    return render_plain_text_str(tokens).encode(output_codepage.codec, errors='replace')


def render_console_text(rich_text: str) -> str:
    """Rich text as shown on the console, without runs of empty lines"""
    return _REPEATED_NEWLINES.sub('\n', rich_text)
