# Job processing for the ESC/POS receipt emulator
# Turns one complete print job into its rich-text and plain-text renderings

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from .codepages import Codepage
from .decoder import DEFAULT_CODEPAGE, decode
from .renderer import DEFAULT_OUTPUT_CODEPAGE, render_plain_text, render_rich_text
from .tokens import Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Job:
    """One complete print job as delivered by a listener"""
    raw_bytes: bytes
    source_label: str
    received_at: datetime = field(default_factory=datetime.now)


@dataclass
class JobResult:
    """Both renderings of a job plus the tokens they came from"""
    rich_text: str
    plain_text: bytes
    token_count: int
    tokens: List[Token] = field(default_factory=list)
    output_codepage: Codepage = DEFAULT_OUTPUT_CODEPAGE

    @property
    def is_empty(self) -> bool:
        return self.token_count == 0


def process_job(job: Job,
                default_codepage: Codepage = DEFAULT_CODEPAGE,
                output_codepage: Codepage = DEFAULT_OUTPUT_CODEPAGE) -> JobResult:
    """Decode a job and render it both ways"""
    if job is None or job.raw_bytes is None:
        raise TypeError("process_job() requires a job with raw bytes")

    tokens = decode(job.raw_bytes, default_codepage)
    logger.debug("[%s] Decoded %d bytes into %d tokens",
                 job.source_label, len(job.raw_bytes), len(tokens))
    return JobResult(
        rich_text=render_rich_text(tokens),
        plain_text=render_plain_text(tokens, output_codepage),
        token_count=len(tokens),
        tokens=tokens,
        output_codepage=output_codepage,
    )


def process_bytes(data: bytes, source_label: str,
                  default_codepage: Codepage = DEFAULT_CODEPAGE,
                  output_codepage: Codepage = DEFAULT_OUTPUT_CODEPAGE) -> JobResult:
    """Shortcut for callers holding a (bytes, source label) pair"""
    if data is None:
        raise TypeError("process_bytes() requires job bytes, got None")
    return process_job(Job(bytes(data), source_label), default_codepage, output_codepage)
