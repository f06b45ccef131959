# Tests for the codepage table and the renderers

import logging
from types import SimpleNamespace

import pytest
from escpos_emulator.codepages import Codepage, codepage_from_name, is_supported, resolve_codepage
from escpos_emulator.decoder import decode
from escpos_emulator.renderer import (
    decode_run,
    render_console_text,
    render_plain_text,
    render_rich_text,
)
from escpos_emulator.tokens import TextRun


class TestCodepages:
    """ESC t numbers and codec names"""

    @pytest.mark.parametrize('table_id, expected', [
        (0, Codepage.CP437),
        (2, Codepage.CP850),
        (16, Codepage.CP1252),
        (17, Codepage.CP866),
        (19, Codepage.CP858),
        (20, Codepage.CP1251),
        (66, Codepage.CP1251),
        (67, Codepage.CP866),
    ])
    def test_known_tables(self, table_id, expected):
        assert resolve_codepage(table_id) is expected

    def test_unknown_table(self):
        assert resolve_codepage(5) is None
        assert resolve_codepage(255) is None

    def test_every_codepage_is_available(self):
        for codepage in Codepage:
            assert is_supported(codepage.codec)

    def test_unsupported_scheme(self):
        assert not is_supported('no-such-codepage')

    def test_codepage_from_alias(self):
        assert codepage_from_name('windows-1252') is Codepage.CP1252
        assert codepage_from_name('CP866') is Codepage.CP866

    def test_codepage_outside_enumeration(self):
        with pytest.raises(ValueError):
            codepage_from_name('utf-8')
        with pytest.raises(ValueError):
            codepage_from_name('no-such-codepage')


class TestRichText:
    """Tags interleaved with text"""

    def test_initialize_hello(self):
        tokens = decode(bytes.fromhex('1B 40 48 65 6C 6C 6F 0A'))

        assert render_rich_text(tokens) == '<Initialize Printer>\nHello\n'

    def test_tags_get_their_own_line(self):
        tokens = decode(b'Hi\x1bE\x01there\n')

        assert render_rich_text(tokens) == 'Hi\n<Bold On>\nthere\n'

    def test_text_continues_after_line_break(self):
        tokens = decode(b'one\ntwo\n\nthree')

        assert render_rich_text(tokens) == 'one\ntwo\n\nthree'

    def test_mid_job_codepage_switch(self):
        data = 'Café '.encode('cp1252') + b'\x1bt\x11' + 'Привет'.encode('cp866') + b'\n'
        rich = render_rich_text(decode(data))

        assert rich == 'Café \n<Select Code Table (n=17)>\nПривет\n'

    def test_diagnostic_tokens(self):
        tokens = decode(b'\x07\x1b\xff\x1b')

        assert render_rich_text(tokens) == (
            '<Control Char (0x7)>\n'
            '<Unknown ESC Command (0x1B 0xff)>\n'
            '<Incomplete ESC>'
        )

    def test_undefined_byte_replaced_alone(self):
        data = b'\x1bt\x14' + 'Привет'.encode('cp1251') + b'\x98'

        rich = render_rich_text(decode(data))

        assert rich == '<Select Code Table (n=20)>\nПривет\ufffd'

    def test_undefined_cp1252_byte(self):
        assert decode_run(TextRun(b'A\x81B', Codepage.CP1252)) == 'A\ufffdB'

    def test_missing_codec_falls_back_to_latin1(self, caplog):
        run = TextRun(b'A\xe9B', SimpleNamespace(codec='x-no-such-codec'))

        with caplog.at_level(logging.WARNING):
            text = decode_run(run)

        assert text == 'A\xe9B'
        assert 'x-no-such-codec' in caplog.text


class TestPlainText:
    """Text only, in the output codepage"""

    def test_initialize_hello(self):
        tokens = decode(bytes.fromhex('1B 40 48 65 6C 6C 6F 0A'))

        assert render_plain_text(tokens) == b'Hello'

    def test_feed_and_cut_become_line_breaks(self):
        assert render_plain_text(decode(b'A\x1bd\x03B')) == b'A\nB'
        assert render_plain_text(decode(b'A\x1dV\x00B')) == b'A\nB'

    def test_other_tags_vanish(self):
        assert render_plain_text(decode(b'A\x1bE\x01B\x07C')) == b'ABC'

    def test_blank_lines_collapse(self):
        assert render_plain_text(decode(b'A\n\n\n  \nB\n\x1dV\x00')) == b'A\nB'

    def test_encoded_in_output_codepage(self):
        data = b'Total\n\x1bt\x11' + 'Привет'.encode('cp866')
        plain = render_plain_text(decode(data), Codepage.CP1251)

        assert plain == 'Total\nПривет'.encode('cp1251')

    def test_unmappable_characters_are_replaced(self):
        data = '€5'.encode('cp858')
        plain = render_plain_text(decode(b'\x1bt\x13' + data), Codepage.CP437)

        assert plain == b'?5'


class TestConsoleText:

    def test_collapses_empty_lines(self):
        assert render_console_text('a\n\n\nb\n') == 'a\nb\n'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
