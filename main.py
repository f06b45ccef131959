#!/usr/bin/env python3
"""
ESC/POS Receipt Emulator - pretends to be a receipt printer and saves what it is sent
"""

import logging
import socket
import time
from pathlib import Path

from escpos_emulator.config import configured_codepage, load_config
from escpos_emulator.job_processor import Job, process_job
from escpos_emulator.logging_config import RECEIPT_VIEW, setup_logging_from_config
from escpos_emulator.notifier import SoundNotifier
from escpos_emulator.printer_listener import PrinterListener
from escpos_emulator.receipt_store import ReceiptStore, file_timestamp
from escpos_emulator.renderer import render_console_text
from escpos_emulator.webhook_client import StubWebhookClient, WebhookClient

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent / 'config.json'


class ReceiptEmulator:
    def __init__(self, config=None):
        self.config = config or load_config(CONFIG_PATH)
        self.default_codepage = configured_codepage(self.config, 'default_codepage')
        self.output_codepage = configured_codepage(self.config, 'output_codepage')
        self.store = ReceiptStore(self.config['output_dir'])
        self.notifier = None
        if self.config['sound_enabled']:
            self.notifier = SoundNotifier(cooldown=self.config['sound_cooldown_ms'] / 1000)
        if self.config['webhook_url']:
            self.webhook = WebhookClient(self.config['webhook_url'], api_key=self.config['api_key'])
        else:
            self.webhook = StubWebhookClient()
        self.listener = PrinterListener(self.on_job)
        self.running = False

    def on_job(self, data: bytes, source: str):
        job = Job(data, source)
        result = process_job(job, self.default_codepage, self.output_codepage)
        if result.is_empty:
            logger.info("[%s] Job decoded to nothing; not saved", source)
            return

        if self.notifier:
            self.notifier.notify(source)

        stamp = file_timestamp(job)
        logger.info("\n%s START JOB %s (%s) %s\n%s\n%s END JOB %s (%s) %s",
                    '=' * 30, stamp, source, '=' * 30,
                    render_console_text(result.rich_text),
                    '=' * 30, stamp, source, '=' * 30, extra=RECEIPT_VIEW)

        self.store.save(job, result)
        self.webhook.submit(job, result)

    def start(self):
        cfg = self.config
        if cfg['enable_tcp']:
            self.listener.start_network(cfg['tcp_host'], cfg['tcp_port'])
            if self.listener.wait_until_listening():
                self._log_addresses(self.listener.config['network_port'])
        if cfg['enable_serial']:
            self.listener.start_serial(cfg['serial_port'], cfg['serial_baudrate'],
                                       cfg['serial_timeout_ms'] / 1000)
        if not cfg['enable_tcp'] and not cfg['enable_serial']:
            logger.warning("No listeners enabled. Set enable_tcp or enable_serial in config.json.")
            return
        self.running = True
        logger.info("Output files will be located in the directory: %s",
                    self.store.output_dir.resolve())

    def _log_addresses(self, port: int):
        """Show the addresses a POS system can be pointed at"""
        try:
            addresses = sorted(set(socket.gethostbyname_ex(socket.gethostname())[2]))
        except OSError:
            addresses = []
        for address in addresses:
            if not address.startswith('127.'):
                logger.info("  Connect your POS to %s:%s", address, port)

    def stop(self):
        self.listener.stop()
        if self.notifier:
            self.notifier.stop()
        self.webhook.stop()
        self.running = False

    def get_status(self):
        return {
            'running': self.running,
            'listener': self.listener.get_status(),
            'store': self.store.get_status(),
        }


def main():
    config = load_config(CONFIG_PATH)
    setup_logging_from_config(config)

    emulator = ReceiptEmulator(config)
    emulator.start()
    if not emulator.running:
        return

    print("=" * 50)
    print("  ESC/POS Receipt Emulator")
    print("=" * 50)
    print(f"Output: {emulator.store.output_dir.resolve()}")
    print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")
        emulator.stop()


if __name__ == '__main__':
    main()
