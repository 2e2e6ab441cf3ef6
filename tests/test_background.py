import asyncio
import threading
import unittest

from neoapi.background import BackgroundClient
from neoapi.constants import DEFAULT_GROUP, DEFAULT_MODEL, DEFAULT_PROJECT
from tests.resources import RecordingHandler, make_config, make_event


class TestBackgroundClient(unittest.TestCase):
    def setUp(self):
        self.handler = RecordingHandler()
        self.http_client = self.handler.client()
        # Large batches and a slow timer: only explicit flushes send
        self.config = make_config(batch_size=100, flush_interval=10.0)

    def tearDown(self):
        asyncio.run(self.http_client.aclose())

    def make_client(self, **kwargs):
        client = BackgroundClient(self.config, http_client=self.http_client, **kwargs)
        self.addCleanup(client.stop, 5)
        return client

    def test_flush_delivers_tracked_events(self):
        client = self.make_client()

        for text in ("one", "two", "three"):
            self.assertTrue(client.track(make_event(text)))
        report = client.flush(timeout=5)

        self.assertEqual(report.delivered, 3)
        self.assertEqual(sorted(self.handler.texts), ["one", "three", "two"])

    def test_tracking_from_many_threads(self):
        client = self.make_client()

        def produce(worker):
            for i in range(25):
                client.track(make_event(f"{worker}-{i}"))

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertTrue(client.stop(timeout=5))

        expected = sorted(f"{n}-{i}" for n in range(4) for i in range(25))
        self.assertEqual(sorted(self.handler.texts), expected)

    def test_batch_process(self):
        client = self.make_client()

        results = client.batch_process(
            ["first prompt", "second prompt"], project="batch", group="prompts"
        )
        client.stop(timeout=5)

        self.assertEqual(results, ["Processed: first prompt", "Processed: second prompt"])
        payloads = sorted(self.handler.payloads, key=lambda p: p["text"])
        self.assertEqual([p["text"] for p in payloads], results)
        for payload in payloads:
            self.assertEqual(payload["project"], "batch")
            self.assertEqual(payload["group"], "prompts")
            self.assertEqual(payload["model"], DEFAULT_MODEL)
            self.assertEqual(payload["promptTokens"], 0)

    def test_batch_process_default_fields(self):
        client = self.make_client()

        client.batch_process(["hello"])
        client.stop(timeout=5)

        payload = self.handler.payloads[0]
        self.assertEqual(payload["project"], DEFAULT_PROJECT)
        self.assertEqual(payload["group"], DEFAULT_GROUP)

    def test_stop_flushes_and_rejects_later_events(self):
        client = self.make_client()
        client.track(make_event("before"))

        self.assertTrue(client.stop(timeout=5))

        self.assertFalse(client.running)
        self.assertEqual(self.handler.texts, ["before"])
        with self.assertLogs("neoapi.background", level="WARNING"):
            self.assertFalse(client.track(make_event("after")))
        self.assertIsNone(client.flush())
        self.assertEqual(self.handler.texts, ["before"])

    def test_stop_is_idempotent(self):
        client = self.make_client()
        thread = client._thread

        self.assertTrue(client.stop(timeout=5))
        self.assertTrue(client.stop(timeout=5))

        self.assertFalse(thread.is_alive())
        self.assertIsNone(client._loop)

    def test_without_autostart(self):
        client = self.make_client(autostart=False)

        self.assertFalse(client.running)
        self.assertTrue(client.stop())

        client.start()
        self.assertTrue(client.running)
        client.track(make_event("started"))
        client.stop(timeout=5)

        self.assertEqual(self.handler.texts, ["started"])

    def test_context_manager(self):
        with BackgroundClient(
            self.config, http_client=self.http_client, autostart=False
        ) as client:
            self.assertTrue(client.running)
            client.track(make_event("inside"))

        self.assertFalse(client.running)
        self.assertEqual(self.handler.texts, ["inside"])

    def test_injected_http_client_stays_open(self):
        client = self.make_client()

        client.stop(timeout=5)

        self.assertFalse(self.http_client.is_closed)
