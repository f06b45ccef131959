# Codepage table for the ESC/POS receipt emulator
# Maps ESC t code table numbers to the text codecs used for decoding

import codecs
from enum import Enum
from typing import Dict, Optional


class Codepage(Enum):
    """Text decoding schemes the emulator knows how to handle"""
    CP437 = 'cp437'      # DOS-US
    CP850 = 'cp850'      # DOS-Multilingual
    CP858 = 'cp858'      # DOS-Multilingual with Euro
    CP866 = 'cp866'      # DOS Cyrillic #2
    CP1251 = 'cp1251'    # Windows Cyrillic
    CP1252 = 'cp1252'    # Windows Latin-1

    @property
    def codec(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return CODEPAGE_LABELS[self]


CODEPAGE_LABELS: Dict[Codepage, str] = {
    Codepage.CP437: 'DOS-US',
    Codepage.CP850: 'DOS-Multilingual',
    Codepage.CP858: 'DOS-Multilingual (Euro)',
    Codepage.CP866: 'DOS Cyrillic #2',
    Codepage.CP1251: 'Windows Cyrillic',
    Codepage.CP1252: 'Windows Latin-1',
}

# ESC t n -> codepage, as observed on the printers the emulator stands in for
CODE_TABLES: Dict[int, Codepage] = {
    0: Codepage.CP437,
    2: Codepage.CP850,
    16: Codepage.CP1252,
    17: Codepage.CP866,
    19: Codepage.CP858,
    20: Codepage.CP1251,
    66: Codepage.CP1251,
    67: Codepage.CP866,
}


def resolve_codepage(table_id: int) -> Optional[Codepage]:
    """Return the codepage for an ESC t table number, or None if unknown"""
    return CODE_TABLES.get(table_id)


def is_supported(name: str) -> bool:
    """Check whether the host codec registry can decode the given scheme"""
    try:
        codecs.lookup(name)
    except LookupError:
        return False
    return True


def codepage_from_name(name: str) -> Codepage:
    """
    Resolve a codec name or alias (e.g. 'windows-1252') to a Codepage.

    Raises ValueError when the scheme is unknown to Python or outside the
    set the emulator supports.
    """
    try:
        canonical = codecs.lookup(name).name
    except LookupError:
        raise ValueError(f"Unknown codepage: {name}")
    for codepage in Codepage:
        if codecs.lookup(codepage.codec).name == canonical:
            return codepage
    raise ValueError(f"Unsupported codepage: {name}")
