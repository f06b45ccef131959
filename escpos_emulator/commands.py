# ESC/POS command catalog for the receipt emulator
# One table for every command the decoder recognizes: parameter lengths and tag text

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .codepages import resolve_codepage

ESC = 0x1B
GS = 0x1D
US = 0x1F

COMMAND_PREFIXES = (ESC, GS)
VENDOR_INTRODUCER = bytes([US, ESC, US])

Description = Tuple[str, Dict[str, Any]]


@dataclass(frozen=True)
class CommandSpec:
    """
    A catalog entry.

    param_length receives the parameter bytes read so far and returns how
    many the command needs in total. Fixed-length commands ignore their
    argument; computed ones are asked again until the answer stops growing.
    """
    mnemonic: str
    param_length: Callable[[bytes], int]
    describe: Callable[[bytes], Description]
    selects_codepage: bool = False
    feeds_paper: bool = False

    def resolve_length(self, data: bytes, start: int) -> Optional[int]:
        """Number of parameter bytes at data[start:], or None if the buffer runs out"""
        needed = self.param_length(b'')
        while True:
            if start + needed > len(data):
                return None
            total = self.param_length(bytes(data[start:start + needed]))
            if total <= needed:
                return needed
            needed = total


def fixed(count: int) -> Callable[[bytes], int]:
    return lambda params: count


def _word(low: int, high: int) -> int:
    return low + high * 256


# --- ESC commands ---

def _initialize(p: bytes) -> Description:
    return 'Initialize Printer', {}


def _print_mode(p: bytes) -> Description:
    return f'Set Print Mode (n=0x{p[0]:x})', {'mode': p[0]}


def _bold(p: bytes) -> Description:
    on = bool(p[0] & 0x01)
    return ('Bold On' if on else 'Bold Off'), {'enabled': on}


def _underline(p: bytes) -> Description:
    n = p[0]
    if n in (0, 48):
        return 'Underline Off', {'thickness': 0}
    if n in (1, 49):
        return 'Underline On (1-dot)', {'thickness': 1}
    if n in (2, 50):
        return 'Underline On (2-dot)', {'thickness': 2}
    return f'Set Underline (n={n})', {'n': n}


def _font(p: bytes) -> Description:
    font = 'B' if p[0] in (1, 49) else 'A'
    return f'Select Font {font}', {'font': font}


def _code_table(p: bytes) -> Description:
    codepage = resolve_codepage(p[0])
    return f'Select Code Table (n={p[0]})', {
        'table': p[0],
        'codepage': codepage.codec if codepage else None,
    }


def _justification(p: bytes) -> Description:
    n = p[0]
    for values, side in (((0, 48), 'Left'), ((1, 49), 'Center'), ((2, 50), 'Right')):
        if n in values:
            return f'Align {side}', {'align': side.lower()}
    return f'Select Justification (n={n})', {'n': n}


def _pulse(p: bytes) -> Description:
    pin, on_ms, off_ms = p[0], p[1] * 2, p[2] * 2
    return (f'Pulse Drawer (pin={pin}, onTime={on_ms}ms, offTime={off_ms}ms)',
            {'pin': pin, 'on_ms': on_ms, 'off_ms': off_ms})


def _feed_dots(p: bytes) -> Description:
    return f'Print and Feed Paper ({p[0]} dots)', {'dots': p[0]}


def _feed_lines(p: bytes) -> Description:
    return f'Print and Feed Paper ({p[0]} lines)', {'lines': p[0]}


def _default_line_spacing(p: bytes) -> Description:
    return 'Default Line Spacing', {}


def _line_spacing(p: bytes) -> Description:
    return f'Set Line Spacing ({p[0]} dots)', {'dots': p[0]}


def _double_strike(p: bytes) -> Description:
    on = bool(p[0] & 0x01)
    return ('Double Strike On' if on else 'Double Strike Off'), {'enabled': on}


def _upside_down(p: bytes) -> Description:
    on = bool(p[0] & 0x01)
    return ('Upside Down On' if on else 'Upside Down Off'), {'enabled': on}


def _international_charset(p: bytes) -> Description:
    return f'Select International Charset (n={p[0]})', {'charset': p[0]}


def _absolute_position(p: bytes) -> Description:
    position = _word(p[0], p[1])
    return f'Set Absolute Position ({position})', {'position': position}


def _bit_image_length(p: bytes) -> int:
    if len(p) < 3:
        return 3
    bytes_per_column = 1 if p[0] in (0, 1) else 3
    return 3 + _word(p[1], p[2]) * bytes_per_column


def _bit_image(p: bytes) -> Description:
    columns = _word(p[1], p[2])
    return f'Select Bit Image Mode (m={p[0]}, {columns} columns)', {'mode': p[0], 'columns': columns}


# --- GS commands ---

def _invert(p: bytes) -> Description:
    on = bool(p[0] & 0x01)
    return ('Invert On' if on else 'Invert Off'), {'enabled': on}


def _char_size(p: bytes) -> Description:
    width = ((p[0] >> 4) & 0x0F) + 1
    height = (p[0] & 0x0F) + 1
    return f'Set Char Size (Wx{width} Hx{height})', {'width': width, 'height': height}


# Only function B cuts (feed then cut) carry the extra feed byte
CUT_MODES_WITH_FEED = (0x41, 0x42)


def _cut_length(p: bytes) -> int:
    if p and p[0] in CUT_MODES_WITH_FEED:
        return 2
    return 1


def _cut(p: bytes) -> Description:
    mode = p[0]
    if mode in (0x00, 0x30):
        name = 'Full Cut'
    elif mode in (0x01, 0x31):
        name = 'Partial Cut'
    elif mode == 0x41:
        name = 'Full Cut (mode A)'
    elif mode == 0x42:
        name = 'Partial Cut (mode B)'
    else:
        name = f'Paper Cut (mode=0x{mode:x})'
    params = {'mode': mode}
    if len(p) > 1:
        params['feed'] = p[1]
        name = f'{name} (with param 0x{p[1]:x})'
    return name, params


def _nv_image(p: bytes) -> Description:
    return f'Print NV Bit Image (mode={p[0]})', {'mode': p[0]}


HRI_POSITIONS = {
    0: ('HRI Text Off', 'off'),
    1: ('HRI Above Barcode', 'above'),
    2: ('HRI Below Barcode', 'below'),
    3: ('HRI Above & Below Barcode', 'both'),
}


def _hri_position(p: bytes) -> Description:
    n = p[0]
    key = n - 48 if 48 <= n <= 51 else n
    if key in HRI_POSITIONS:
        name, position = HRI_POSITIONS[key]
        return name, {'position': position}
    return f'HRI Pos={n}', {'n': n}


def _hri_font(p: bytes) -> Description:
    return f'Select HRI Font (n={p[0]})', {'font': p[0]}


def _barcode_height(p: bytes) -> Description:
    return f'Set Barcode Height ({p[0]} dots)', {'dots': p[0]}


def _barcode_width(p: bytes) -> Description:
    return f'Set Barcode Width (n={p[0]})', {'width': p[0]}


def _left_margin(p: bytes) -> Description:
    margin = _word(p[0], p[1])
    return f'Set Left Margin ({margin})', {'margin': margin}


def _print_area_width(p: bytes) -> Description:
    width = _word(p[0], p[1])
    return f'Set Print Area Width ({width})', {'width': width}


def _barcode_length(p: bytes) -> int:
    if not p:
        return 1
    if p[0] <= 6:
        # Function A: data runs up to and including a NUL
        if len(p) >= 2 and p[-1] == 0x00:
            return len(p)
        return len(p) + 1
    if len(p) < 2:
        return 2
    return 2 + p[1]


def _barcode(p: bytes) -> Description:
    system = p[0]
    payload = p[1:-1] if system <= 6 else p[2:]
    data = payload.decode('latin-1')
    return f'Print Barcode (system={system}, data={data})', {'system': system, 'data': data}


def _raster_length(p: bytes) -> int:
    if not p or p[0] != 0x30:
        return 1
    if len(p) < 6:
        return 6
    return 6 + _word(p[2], p[3]) * _word(p[4], p[5])


def _raster_image(p: bytes) -> Description:
    if p[0] != 0x30:
        return f'Raster Function (fn=0x{p[0]:x})', {'function': p[0]}
    width = _word(p[2], p[3]) * 8
    height = _word(p[4], p[5])
    return (f'Print Raster Bit Image (mode={p[1]}, {width}x{height} dots)',
            {'mode': p[1], 'width': width, 'height': height})


def _extended_length(p: bytes) -> int:
    if len(p) < 3:
        return 3
    return 3 + _word(p[1], p[2])


EXTENDED_FUNCTIONS = {
    0x4C: 'Graphics Data',
    0x6B: '2D Code Data',
}


def _extended(p: bytes) -> Description:
    function = chr(p[0]) if 0x20 < p[0] < 0x7F else f'0x{p[0]:x}'
    size = _word(p[1], p[2])
    name = EXTENDED_FUNCTIONS.get(p[0], 'Extended Function')
    return f'{name} (GS ( {function}, {size} bytes)', {'function': p[0], 'size': size}


COMMANDS: Dict[Tuple[int, int], CommandSpec] = {
    (ESC, 0x40): CommandSpec('ESC @', fixed(0), _initialize),
    (ESC, 0x21): CommandSpec('ESC !', fixed(1), _print_mode),
    (ESC, 0x45): CommandSpec('ESC E', fixed(1), _bold),
    (ESC, 0x2D): CommandSpec('ESC -', fixed(1), _underline),
    (ESC, 0x4D): CommandSpec('ESC M', fixed(1), _font),
    (ESC, 0x74): CommandSpec('ESC t', fixed(1), _code_table, selects_codepage=True),
    (ESC, 0x61): CommandSpec('ESC a', fixed(1), _justification),
    (ESC, 0x70): CommandSpec('ESC p', fixed(3), _pulse),
    (ESC, 0x4A): CommandSpec('ESC J', fixed(1), _feed_dots, feeds_paper=True),
    (ESC, 0x64): CommandSpec('ESC d', fixed(1), _feed_lines, feeds_paper=True),
    (ESC, 0x32): CommandSpec('ESC 2', fixed(0), _default_line_spacing),
    (ESC, 0x33): CommandSpec('ESC 3', fixed(1), _line_spacing),
    (ESC, 0x47): CommandSpec('ESC G', fixed(1), _double_strike),
    (ESC, 0x7B): CommandSpec('ESC {', fixed(1), _upside_down),
    (ESC, 0x52): CommandSpec('ESC R', fixed(1), _international_charset),
    (ESC, 0x24): CommandSpec('ESC $', fixed(2), _absolute_position),
    (ESC, 0x2A): CommandSpec('ESC *', _bit_image_length, _bit_image),
    (GS, 0x42): CommandSpec('GS B', fixed(1), _invert),
    (GS, 0x21): CommandSpec('GS !', fixed(1), _char_size),
    (GS, 0x56): CommandSpec('GS V', _cut_length, _cut, feeds_paper=True),
    (GS, 0x2F): CommandSpec('GS /', fixed(1), _nv_image),
    (GS, 0x48): CommandSpec('GS H', fixed(1), _hri_position),
    (GS, 0x66): CommandSpec('GS f', fixed(1), _hri_font),
    (GS, 0x68): CommandSpec('GS h', fixed(1), _barcode_height),
    (GS, 0x77): CommandSpec('GS w', fixed(1), _barcode_width),
    (GS, 0x4C): CommandSpec('GS L', fixed(2), _left_margin),
    (GS, 0x57): CommandSpec('GS W', fixed(2), _print_area_width),
    (GS, 0x6B): CommandSpec('GS k', _barcode_length, _barcode),
    (GS, 0x76): CommandSpec('GS v', _raster_length, _raster_image),
    (GS, 0x28): CommandSpec('GS (', _extended_length, _extended),
}


def lookup(prefix: int, opcode: int) -> Optional[CommandSpec]:
    return COMMANDS.get((prefix, opcode))


# --- Vendor extensions (1F 1B 1F ...) ---

@dataclass(frozen=True)
class VendorExtension:
    """A literal marker after the 1F 1B 1F introducer, followed by a fixed payload"""
    marker: bytes
    payload_length: int
    describe: Callable[[bytes], Description]
    incomplete_name: str


def _set_ip(p: bytes) -> Description:
    address = '.'.join(str(b) for b in p)
    return f'Set IP Address ({address})', {'address': address}


BAUD_RATES = {
    (0x48, 0x00): '9600',
    (0x08, 0x00): '19200',
    (0xC8, 0x00): '38400',
    (0x88, 0x00): '115200',
}


def _set_baud(p: bytes) -> Description:
    baud = BAUD_RATES.get((p[0], p[1]), 'Unknown Baud')
    return (f'Set Baud Rate ({baud} - 0x{p[0]:x} 0x{p[1]:x})',
            {'baud': baud, 'pattern': bytes(p).hex()})


VENDOR_EXTENSIONS: List[VendorExtension] = [
    VendorExtension(b'\x91\x00IP', 4, _set_ip, 'Set IP Command'),
    VendorExtension(b'\xbf', 2, _set_baud, 'Set Baud Rate Command'),
]


def match_vendor_extension(data: bytes, start: int) -> Optional[VendorExtension]:
    """Find the extension whose marker appears at data[start:]"""
    for extension in VENDOR_EXTENSIONS:
        if data[start:start + len(extension.marker)] == extension.marker:
            return extension
    return None
