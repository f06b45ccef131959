# Decoded token types for the ESC/POS receipt emulator
# Every token remembers the bytes it was decoded from and where they started

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .codepages import Codepage

PREFIX_NAMES = {
    0x1B: 'ESC',
    0x1D: 'GS',
    0x1F: '1F 1B 1F',
}


def prefix_name(prefix: int) -> str:
    return PREFIX_NAMES.get(prefix, f'0x{prefix:02X}')


@dataclass
class TextRun:
    """Printable bytes decoded under the codepage active when they were read"""
    data: bytes
    codepage: Codepage
    offset: int = 0

    @property
    def raw(self) -> bytes:
        return self.data

    def text(self) -> str:
        """Decode with the run's codepage; bytes it leaves undefined become U+FFFD"""
        return self.data.decode(self.codepage.codec, errors='replace')


@dataclass
class CommandTag:
    """A recognized command with its decoded parameters"""
    name: str
    params: Dict[str, Any] = field(default_factory=dict)
    raw: bytes = b''
    offset: int = 0
    feeds_paper: bool = False

    def render(self) -> str:
        return f'<{self.name}>'


@dataclass
class UnknownCommand:
    """A known prefix followed by an opcode the catalog does not list"""
    prefix: int
    opcode: int
    raw: bytes = b''
    offset: int = 0

    def render(self) -> str:
        """
        Tag text for the rich rendering.

        The prefix is written as uppercase hex and the opcode as lowercase,
        unpadded hex: ``<Unknown ESC Command (0x1B 0x9a)>``. Vendor sequences
        read ``<Unknown 1F 1B 1F sequence (subCmd=0x5)>``.
        """
        if self.prefix == 0x1F:
            return f'<Unknown 1F 1B 1F sequence (subCmd=0x{self.opcode:x})>'
        return f'<Unknown {prefix_name(self.prefix)} Command (0x{self.prefix:X} 0x{self.opcode:x})>'


@dataclass
class IncompleteCommand:
    """A prefix or command cut short by the end of the buffer"""
    prefix: int
    command: Optional[str] = None
    raw: bytes = b''
    offset: int = 0

    def render(self) -> str:
        return f'<Incomplete {self.command or prefix_name(self.prefix)}>'


@dataclass
class LineBreak:
    raw: bytes = b'\n'
    offset: int = 0


@dataclass
class ControlChar:
    """Any other non-printable byte"""
    byte: int
    offset: int = 0

    @property
    def raw(self) -> bytes:
        return bytes([self.byte])

    def render(self) -> str:
        return f'<Control Char (0x{self.byte:x})>'


Token = Union[TextRun, CommandTag, UnknownCommand, IncompleteCommand, LineBreak, ControlChar]
