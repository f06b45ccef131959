# Webhook Client - job-completed notifications for the ESC/POS emulator
# Posts a short summary of each decoded job to an HTTP endpoint

import logging
import queue
import threading
import time
from typing import Any, Dict, Optional

import requests

from .job_processor import Job, JobResult

logger = logging.getLogger(__name__)

_STOP = object()


def job_summary(job: Job, result: JobResult) -> Dict[str, Any]:
    """JSON-ready description of a finished job"""
    return {
        'source': job.source_label,
        'received_at': job.received_at.isoformat(),
        'byte_count': len(job.raw_bytes),
        'token_count': result.token_count,
        'plain_text': result.plain_text.decode(result.output_codepage.codec, errors='replace'),
    }


class WebhookClient:
    """Posts job summaries to a configured URL"""

    def __init__(self, url: str, api_key: str = None, timeout: int = 10):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()

        if api_key:
            self.session.headers.update({'Authorization': f'Bearer {api_key}'})

        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'ESCPOS-Receipt-Emulator/1.0'
        })

        # Retry settings
        self.max_retries = 3
        self.retry_delay = 2  # seconds

        self.pending = queue.Queue()
        self.thread: Optional[threading.Thread] = None
        self._thread_lock = threading.Lock()

    def submit(self, job: Job, result: JobResult):
        """Queue a job for posting by the background worker"""
        with self._thread_lock:
            if self.thread is None:
                self.thread = threading.Thread(target=self._worker, daemon=True)
                self.thread.start()
        self.pending.put((job, result))

    def stop(self, timeout: float = 5.0):
        """Let queued posts finish, then end the worker"""
        with self._thread_lock:
            thread = self.thread
            self.thread = None
        if thread is None:
            return
        self.pending.put(_STOP)
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Webhook worker still busy after %s seconds", timeout)

    def _worker(self):
        while True:
            item = self.pending.get()
            if item is _STOP:
                break
            job, result = item
            try:
                self.post_job(job, result)
            except Exception as e:
                logger.exception("[%s] Webhook post failed: %s", job.source_label, e)

    def post_job(self, job: Job, result: JobResult) -> Dict[str, Any]:
        """Send one job summary; never raises"""
        payload = job_summary(job, result)

        for attempt in range(self.max_retries):
            try:
                response = self.session.post(self.url, json=payload, timeout=self.timeout)

                if 200 <= response.status_code < 300:
                    logger.info("[%s] Job posted to webhook", job.source_label)
                    return {'success': True, 'status_code': response.status_code}

                if 400 <= response.status_code < 500:
                    # Client error - retrying won't help
                    logger.error("[%s] Webhook rejected job (%d): %s",
                                 job.source_label, response.status_code, response.text)
                    return {
                        'success': False,
                        'status_code': response.status_code,
                        'error': response.text,
                    }

                logger.warning("Webhook server error %d, retry %d/%d",
                               response.status_code, attempt + 1, self.max_retries)

            except requests.exceptions.Timeout:
                logger.warning("Webhook timeout, retry %d/%d", attempt + 1, self.max_retries)

            except requests.exceptions.ConnectionError:
                logger.warning("Webhook connection error, retry %d/%d", attempt + 1, self.max_retries)

            except requests.exceptions.RequestException as e:
                logger.error("Webhook request failed: %s", e)
                return {'success': False, 'status_code': 0, 'error': str(e)}

            if attempt + 1 < self.max_retries:
                time.sleep(self.retry_delay * (attempt + 1))

        return {'success': False, 'status_code': 0, 'error': 'Max retries exceeded'}


class StubWebhookClient:
    """Stand-in used when no webhook URL is configured"""

    def __init__(self, *args, **kwargs):
        self.post_count = 0

    def submit(self, job: Job, result: JobResult):
        self.post_job(job, result)

    def stop(self, timeout: float = 5.0):
        pass

    def post_job(self, job: Job, result: JobResult) -> Dict[str, Any]:
        self.post_count += 1
        logger.debug("[STUB] Job from %s not posted (no webhook configured)", job.source_label)
        return {'success': True, 'status_code': 200}
