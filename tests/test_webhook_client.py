# Tests for the job webhook client

import threading
from datetime import datetime

import pytest
import requests
from escpos_emulator.job_processor import Job, process_job
from escpos_emulator.webhook_client import StubWebhookClient, WebhookClient, job_summary


class FakeResponse:
    def __init__(self, status_code, text=''):
        self.status_code = status_code
        self.text = text


class ScriptedPost:
    """Replaces Session.post; each call takes the next scripted outcome"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestWebhookClient:
    """Retry policy"""

    def setup_method(self):
        self.job = Job(b'\x1b@Hello\n', 'TCP-10.0.0.5:51000', datetime(2024, 5, 1, 10, 20, 30))
        self.result = process_job(self.job)
        self.client = WebhookClient('http://hooks.local/receipts', api_key='secret')
        self.client.retry_delay = 0

    def test_summary(self):
        summary = job_summary(self.job, self.result)

        assert summary == {
            'source': 'TCP-10.0.0.5:51000',
            'received_at': '2024-05-01T10:20:30',
            'byte_count': 8,
            'token_count': 3,
            'plain_text': 'Hello',
        }

    def test_auth_header(self):
        assert self.client.session.headers['Authorization'] == 'Bearer secret'

    def test_success(self, monkeypatch):
        post = ScriptedPost(FakeResponse(200))
        monkeypatch.setattr(self.client.session, 'post', post)

        result = self.client.post_job(self.job, self.result)

        assert result == {'success': True, 'status_code': 200}
        assert post.calls[0][0] == 'http://hooks.local/receipts'
        assert post.calls[0][1]['plain_text'] == 'Hello'

    def test_client_error_not_retried(self, monkeypatch):
        post = ScriptedPost(FakeResponse(400, 'bad'))
        monkeypatch.setattr(self.client.session, 'post', post)

        result = self.client.post_job(self.job, self.result)

        assert result['success'] is False
        assert result['status_code'] == 400
        assert len(post.calls) == 1

    def test_server_errors_retried_until_limit(self, monkeypatch):
        post = ScriptedPost(FakeResponse(503), FakeResponse(500), FakeResponse(502))
        monkeypatch.setattr(self.client.session, 'post', post)

        result = self.client.post_job(self.job, self.result)

        assert result == {'success': False, 'status_code': 0, 'error': 'Max retries exceeded'}
        assert len(post.calls) == 3

    def test_connection_error_then_success(self, monkeypatch):
        post = ScriptedPost(requests.exceptions.ConnectionError(), FakeResponse(201))
        monkeypatch.setattr(self.client.session, 'post', post)

        result = self.client.post_job(self.job, self.result)

        assert result['success'] is True
        assert len(post.calls) == 2

    def test_timeout_retried(self, monkeypatch):
        post = ScriptedPost(requests.exceptions.Timeout(), requests.exceptions.Timeout(),
                            FakeResponse(200))
        monkeypatch.setattr(self.client.session, 'post', post)

        assert self.client.post_job(self.job, self.result)['success'] is True

    def test_other_request_errors_give_up(self, monkeypatch):
        post = ScriptedPost(requests.exceptions.InvalidURL('nope'))
        monkeypatch.setattr(self.client.session, 'post', post)

        result = self.client.post_job(self.job, self.result)

        assert result['success'] is False
        assert len(post.calls) == 1


class TestWebhookQueue:
    """Posting happens on the worker thread, not the caller's"""

    def setup_method(self):
        self.job = Job(b'\x1b@Hello\n', 'TCP-10.0.0.5:51000')
        self.result = process_job(self.job)
        self.client = WebhookClient('http://hooks.local/receipts')

    def test_submit_does_not_wait_for_the_server(self, monkeypatch):
        release = threading.Event()
        posted = []

        def slow_post(url, json=None, timeout=None):
            release.wait(5)
            posted.append(json['source'])
            return FakeResponse(200)

        monkeypatch.setattr(self.client.session, 'post', slow_post)

        self.client.submit(self.job, self.result)
        self.client.submit(self.job, self.result)
        assert posted == []

        release.set()
        self.client.stop()

        assert posted == ['TCP-10.0.0.5:51000', 'TCP-10.0.0.5:51000']

    def test_worker_survives_a_failing_post(self, monkeypatch):
        post = ScriptedPost(ValueError("bad payload"), FakeResponse(200))
        monkeypatch.setattr(self.client.session, 'post', post)

        self.client.submit(self.job, self.result)
        self.client.submit(self.job, self.result)
        self.client.stop()

        assert len(post.calls) == 2

    def test_stop_without_submissions(self):
        self.client.stop()

        assert self.client.thread is None


class TestStubWebhookClient:

    def test_counts_posts(self):
        job = Job(b'x', 'TCP')
        stub = StubWebhookClient()

        stub.post_job(job, process_job(job))

        assert stub.post_count == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
