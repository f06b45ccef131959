# ESC/POS stream decoder for the receipt emulator
# Single pass over a job's bytes, producing text runs and command tags

import logging
from dataclasses import dataclass, field
from typing import List, Union

from .codepages import Codepage, resolve_codepage
from .commands import COMMAND_PREFIXES, US, VENDOR_INTRODUCER, lookup, match_vendor_extension
from .tokens import (
    CommandTag,
    ControlChar,
    IncompleteCommand,
    LineBreak,
    TextRun,
    Token,
    UnknownCommand,
)

logger = logging.getLogger(__name__)

LF = 0x0A
CR = 0x0D
HT = 0x09

DEFAULT_CODEPAGE = Codepage.CP1252


@dataclass
class DecoderState:
    """Scan state for one decode call; never shared between jobs"""
    data: bytes
    active_codepage: Codepage
    position: int = 0
    pending_text: bytearray = field(default_factory=bytearray)
    pending_offset: int = 0
    tokens: List[Token] = field(default_factory=list)
    finished: bool = False

    def remaining(self) -> int:
        return len(self.data) - self.position

    def flush_text(self):
        """Close the text run being built, if any"""
        if self.pending_text:
            self.tokens.append(TextRun(bytes(self.pending_text), self.active_codepage,
                                       self.pending_offset))
            self.pending_text = bytearray()

    def add_text_byte(self, b: int):
        if not self.pending_text:
            self.pending_offset = self.position
        self.pending_text.append(b)
        self.position += 1

    def emit(self, token: Token):
        self.flush_text()
        self.tokens.append(token)

    def give_up(self, prefix: int, command: str = None):
        """Record a truncated command covering the rest of the buffer and stop"""
        self.emit(IncompleteCommand(prefix, command, self.data[self.position:], self.position))
        self.position = len(self.data)
        self.finished = True


class ESCPOSDecoder:
    """
    Stateless ESC/POS tokenizer.

    Usage:
        tokens = ESCPOSDecoder().decode(data)

    Malformed input never raises: truncated commands become
    IncompleteCommand, unknown opcodes UnknownCommand, and stray control
    bytes ControlChar.
    """

    def __init__(self, default_codepage: Codepage = DEFAULT_CODEPAGE):
        self.default_codepage = default_codepage

    def decode(self, data: Union[bytes, bytearray, memoryview],
               default_codepage: Codepage = None) -> List[Token]:
        if data is None:
            raise TypeError("decode() requires a bytes-like job buffer, got None")
        state = DecoderState(bytes(data), default_codepage or self.default_codepage)

        while state.position < len(state.data) and not state.finished:
            b = state.data[state.position]
            if b in COMMAND_PREFIXES:
                self._decode_command(state, b)
            elif b == US and state.data.startswith(VENDOR_INTRODUCER, state.position):
                self._decode_vendor_extension(state)
            elif b == LF:
                state.emit(LineBreak(offset=state.position))
                state.position += 1
            elif b == CR:
                state.flush_text()
                state.position += 1
            elif b >= 0x20 or b == HT:
                state.add_text_byte(b)
            else:
                state.emit(ControlChar(b, state.position))
                state.position += 1

        state.flush_text()
        return state.tokens

    def _decode_command(self, state: DecoderState, prefix: int):
        state.flush_text()
        start = state.position
        if state.remaining() < 2:
            state.give_up(prefix)
            return

        opcode = state.data[start + 1]
        spec = lookup(prefix, opcode)
        if spec is None:
            logger.debug("Unknown command 0x%02X 0x%02X at offset %d", prefix, opcode, start)
            state.emit(UnknownCommand(prefix, opcode, state.data[start:start + 2], start))
            state.position += 2
            return

        param_start = start + 2
        length = spec.resolve_length(state.data, param_start)
        if length is None:
            state.give_up(prefix, spec.mnemonic)
            return

        params = state.data[param_start:param_start + length]
        name, values = spec.describe(params)
        end = param_start + length
        state.emit(CommandTag(name, values, state.data[start:end], start, spec.feeds_paper))
        state.position = end

        if spec.selects_codepage:
            self._select_codepage(state, params[0])

    def _select_codepage(self, state: DecoderState, table_id: int):
        codepage = resolve_codepage(table_id)
        if codepage is None:
            logger.warning("Unknown codepage ID %d selected by ESC t. Using previous: %s",
                           table_id, state.active_codepage.codec)
            return
        state.active_codepage = codepage

    def _decode_vendor_extension(self, state: DecoderState):
        state.flush_text()
        start = state.position
        marker_start = start + len(VENDOR_INTRODUCER)
        if marker_start >= len(state.data):
            state.give_up(US, '1F 1B 1F sequence')
            return

        extension = match_vendor_extension(state.data, marker_start)
        if extension is None:
            sub_command = state.data[marker_start]
            end = marker_start + 1
            state.emit(UnknownCommand(US, sub_command, state.data[start:end], start))
            state.position = end
            return

        payload_start = marker_start + len(extension.marker)
        end = payload_start + extension.payload_length
        if end > len(state.data):
            state.give_up(US, extension.incomplete_name)
            return

        name, values = extension.describe(state.data[payload_start:end])
        state.emit(CommandTag(name, values, state.data[start:end], start))
        state.position = end


_default_decoder = ESCPOSDecoder()


def decode(data: Union[bytes, bytearray, memoryview],
           default_codepage: Codepage = DEFAULT_CODEPAGE) -> List[Token]:
    """Decode one job's bytes into tokens"""
    return _default_decoder.decode(data, default_codepage)
