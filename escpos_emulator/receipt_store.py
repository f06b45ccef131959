# Receipt Store - file output for the ESC/POS receipt emulator
# Saves the raw job and both renderings side by side

import logging
import re
from pathlib import Path
from typing import Dict, Optional

from .job_processor import Job, JobResult

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[:/\\*?"<>|]')


def file_timestamp(job: Job) -> str:
    """ISO timestamp usable in a file name (2024-05-01T10-20-30-123456)"""
    return re.sub(r'[:.]', '-', job.received_at.isoformat())


def safe_source(source_label: str) -> str:
    return _UNSAFE_CHARS.sub('_', source_label)


class ReceiptStore:
    """Writes each job's raw bytes, rich text and plain text to the output directory"""

    DEFAULT_DIR = 'receipts_output'

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or self.DEFAULT_DIR)
        self._ensure_dir()

    def _ensure_dir(self) -> bool:
        try:
            if not self.output_dir.exists():
                self.output_dir.mkdir(parents=True, exist_ok=True)
                logger.info("Receipts directory created: %s", self.output_dir)
            return True
        except OSError as e:
            logger.error("Failed to create receipts directory %s: %s", self.output_dir, e)
            return False

    def file_names(self, job: Job, result: JobResult) -> Dict[str, str]:
        base = f"{file_timestamp(job)}_{safe_source(job.source_label)}"
        output_name = result.output_codepage.name
        return {
            'raw': f"{base}_pos-input-original.bin",
            'rich_text': f"{base}_receipt-rich-text_UTF-8.txt",
            'plain_text': f"{base}_receipt-plain-text_{output_name}.txt",
        }

    def save(self, job: Job, result: JobResult) -> Dict[str, Path]:
        """Save all three files; returns the paths that were written"""
        if not self._ensure_dir():
            return {}

        contents = {
            'raw': job.raw_bytes,
            'rich_text': result.rich_text.encode('utf-8'),
            'plain_text': result.plain_text,
        }
        written = {}
        for kind, name in self.file_names(job, result).items():
            path = self.output_dir / name
            try:
                path.write_bytes(contents[kind])
            except OSError as e:
                logger.error("[%s] Failed to save %s to %s: %s", job.source_label, kind, path, e)
                continue
            written[kind] = path
            logger.info("[%s] Saved %s: %s", job.source_label, kind, path)
        return written

    def get_status(self) -> Dict:
        """Get store status"""
        receipts = list(self.output_dir.glob('*_pos-input-original.bin')) if self.output_dir.exists() else []
        return {
            'output_dir': str(self.output_dir.resolve()),
            'saved_jobs': len(receipts),
        }
