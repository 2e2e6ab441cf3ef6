import json
import unittest
from unittest.mock import AsyncMock, Mock

import httpx

from neoapi.delivery import DeliveryWorker
from neoapi.errors import DeliveryError, RetryableHTTPError
from tests.resources import API_URL, RecordingHandler, make_config, make_event


class TestDeliveryWorker(unittest.IsolatedAsyncioTestCase):
    """
    Test single event delivery, retry and backoff.
    """

    def make_worker(self, *outcomes, **config):
        self.handler = RecordingHandler(*outcomes)
        self.http_client = self.handler.client()
        self.callbacks = Mock()
        self.sleep = AsyncMock()
        return DeliveryWorker(
            make_config(**config),
            callbacks=self.callbacks,
            http_client=self.http_client,
            sleep=self.sleep,
        )

    async def asyncTearDown(self):
        await self.http_client.aclose()

    def slept(self):
        return [call.args[0] for call in self.sleep.await_args_list]

    async def test_success_on_first_attempt(self):
        worker = self.make_worker()
        event = make_event("hello")

        result = await worker.deliver(event)

        self.assertTrue(result.delivered)
        self.assertEqual(result.attempts, 1)
        self.assertEqual(len(self.handler.requests), 1)
        self.assertEqual(self.slept(), [])
        self.callbacks.delivered.assert_called_once_with(result)
        self.callbacks.delivery_failed.assert_not_called()

    async def test_request_shape(self):
        worker = self.make_worker()
        event = make_event("hello", project="demo")

        await worker.deliver(event)

        request = self.handler.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), f"{API_URL}/save")
        self.assertEqual(request.headers["Authorization"], "Bearer test_api_key")
        self.assertEqual(request.headers["Content-Type"], "application/json")
        self.assertTrue(request.headers["User-Agent"].startswith("neoapi-python/"))
        self.assertEqual(json.loads(request.content), event.to_payload())

    async def test_retry_after_server_error_then_success(self):
        worker = self.make_worker(500, 200)
        event = make_event("Retry Output")

        result = await worker.deliver(event)

        self.assertTrue(result.delivered)
        self.assertEqual(result.attempts, 2)
        self.assertEqual(len(self.handler.requests), 2)
        first, second = self.handler.payloads
        self.assertEqual(first, second)
        self.assertEqual(first["text"], "Retry Output")
        self.assertEqual(self.slept(), [2])

    async def test_retry_after_network_error(self):
        worker = self.make_worker(httpx.ConnectError("connection refused"), 200)

        result = await worker.deliver(make_event())

        self.assertTrue(result.delivered)
        self.assertEqual(len(self.handler.requests), 2)

    async def test_client_errors_are_retried_too(self):
        worker = self.make_worker(404, 200)

        result = await worker.deliver(make_event())

        self.assertTrue(result.delivered)
        self.assertEqual(result.attempts, 2)

    async def test_exhausted_retries(self):
        worker = self.make_worker(500, 502, 503, max_retries=3)
        event = make_event("doomed")

        with self.assertLogs("neoapi.delivery", level="WARNING"):
            result = await worker.deliver(event)

        self.assertFalse(result.delivered)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(len(self.handler.requests), 3)
        self.assertEqual(self.slept(), [2, 4])

        self.assertIsInstance(result.error, DeliveryError)
        self.assertIs(result.error.event, event)
        self.assertEqual(result.error.attempts, 3)
        self.assertIsInstance(result.error.__cause__, RetryableHTTPError)
        self.assertEqual(result.error.__cause__.status_code, 503)

        self.callbacks.delivery_failed.assert_called_once_with(event, result.error)
        self.callbacks.delivered.assert_not_called()

    async def test_single_attempt_never_sleeps(self):
        worker = self.make_worker(500, max_retries=1)

        result = await worker.deliver(make_event())

        self.assertFalse(result.delivered)
        self.assertEqual(len(self.handler.requests), 1)
        self.assertEqual(self.slept(), [])

    async def test_backoff_is_capped_at_thirty_seconds(self):
        worker = self.make_worker(*([500] * 7), max_retries=7)

        await worker.deliver(make_event())

        self.assertEqual(self.slept(), [2, 4, 8, 16, 30, 30])

    async def test_analysis_response_is_surfaced(self):
        analysis = {"analysis": "test analysis"}
        worker = self.make_worker(httpx.Response(200, json=analysis))
        event = make_event("Analyze this", need_analysis_response=True)

        result = await worker.deliver(event)

        self.assertEqual(str(self.handler.requests[0].url), f"{API_URL}/analyze")
        self.assertEqual(result.analysis, analysis)
        self.callbacks.analysis_received.assert_called_once_with(event, analysis)

    async def test_analysis_response_formatted_as_json(self):
        analysis = {"analysis": "test analysis", "score": 0.9}
        worker = self.make_worker(httpx.Response(200, json=analysis))
        event = make_event(
            "Analyze this", need_analysis_response=True, format_json_output=True
        )

        result = await worker.deliver(event)

        self.assertEqual(result.analysis, json.dumps(analysis, indent=2))

    async def test_analysis_response_that_is_not_json(self):
        worker = self.make_worker(httpx.Response(200, text="plain words"))
        event = make_event("Analyze this", need_analysis_response=True)

        result = await worker.deliver(event)

        self.assertEqual(result.analysis, "plain words")

    async def test_save_response_is_not_surfaced(self):
        worker = self.make_worker(httpx.Response(200, json={"id": 1}))

        result = await worker.deliver(make_event())

        self.assertIsNone(result.analysis)
        self.callbacks.analysis_received.assert_not_called()

    async def test_injected_client_is_not_closed(self):
        worker = self.make_worker()

        await worker.aclose()

        self.assertFalse(self.http_client.is_closed)


class TestDeliveryWorkerOwnClient(unittest.IsolatedAsyncioTestCase):
    async def test_owned_client_is_created_lazily_and_closed(self):
        worker = DeliveryWorker(make_config())
        self.assertIsNone(worker.http_client)

        http_client = worker._get_http_client()
        await worker.aclose()

        self.assertTrue(http_client.is_closed)
        self.assertIsNone(worker.http_client)
