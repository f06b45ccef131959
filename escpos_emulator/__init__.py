# ESC/POS Receipt Emulator
# Decodes thermal printer jobs into readable receipts

__version__ = '0.1.0'

from .codepages import Codepage, resolve_codepage
from .decoder import ESCPOSDecoder, decode
from .renderer import render_plain_text, render_rich_text
from .job_processor import Job, JobResult, process_job, process_bytes
from .receipt_store import ReceiptStore
from .printer_listener import PrinterListener
from .notifier import SoundNotifier
from .webhook_client import WebhookClient, StubWebhookClient

__all__ = [
    'Codepage',
    'resolve_codepage',
    'ESCPOSDecoder',
    'decode',
    'render_rich_text',
    'render_plain_text',
    'Job',
    'JobResult',
    'process_job',
    'process_bytes',
    'ReceiptStore',
    'PrinterListener',
    'SoundNotifier',
    'WebhookClient',
    'StubWebhookClient',
]
