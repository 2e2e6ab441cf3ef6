import unittest
from unittest.mock import AsyncMock, Mock

from neoapi.delivery import DeliveryResult, DeliveryWorker
from neoapi.dispatcher import BatchDispatcher
from tests.resources import make_event


def delivered(event):
    return DeliveryResult(event=event, endpoint="/save", attempts=1, delivered=True)


def failed(event):
    return DeliveryResult(event=event, endpoint="/save", attempts=3, delivered=False)


class TestBatchDispatcher(unittest.IsolatedAsyncioTestCase):
    """
    Test sampling and concurrent fan-out of a batch.
    """

    def setUp(self):
        self.worker = Mock(spec=DeliveryWorker)
        self.worker.deliver = AsyncMock(side_effect=delivered)
        self.callbacks = Mock()
        self.batch = tuple(make_event(str(i)) for i in range(5))

    async def test_check_frequency_one_delivers_everything(self):
        dispatcher = BatchDispatcher(self.worker, 1, callbacks=self.callbacks)

        report = await dispatcher.dispatch(self.batch)

        sent = [call.args[0] for call in self.worker.deliver.await_args_list]
        self.assertEqual(sent, list(self.batch))
        self.assertEqual((report.size, report.selected, report.delivered), (5, 5, 5))
        self.assertEqual(report.dropped, 0)

    async def test_check_frequency_two_delivers_every_other_position(self):
        dispatcher = BatchDispatcher(self.worker, 2, callbacks=self.callbacks)

        report = await dispatcher.dispatch(self.batch)

        sent = [call.args[0].text for call in self.worker.deliver.await_args_list]
        self.assertEqual(sent, ["0", "2", "4"])
        self.assertEqual(report.selected, 3)
        self.assertEqual(report.dropped, 2)
        self.assertEqual(report.failed, 0)

    async def test_failures_are_counted_not_raised(self):
        self.worker.deliver = AsyncMock(
            side_effect=[delivered(self.batch[0]), failed(self.batch[1]), RuntimeError("bug")]
        )
        dispatcher = BatchDispatcher(self.worker, 1, callbacks=self.callbacks)

        with self.assertLogs("neoapi.dispatcher", level="ERROR"):
            report = await dispatcher.dispatch(self.batch[:3])

        self.assertEqual(report.delivered, 1)
        self.assertEqual(report.failed, 2)

    async def test_report_goes_to_callbacks(self):
        dispatcher = BatchDispatcher(self.worker, 1, callbacks=self.callbacks)

        report = await dispatcher.dispatch(self.batch)

        self.callbacks.batch_dispatched.assert_called_once_with(report)

    async def test_callback_errors_do_not_break_dispatch(self):
        self.callbacks.batch_dispatched.side_effect = ValueError("observer bug")
        dispatcher = BatchDispatcher(self.worker, 1, callbacks=self.callbacks)

        with self.assertLogs("neoapi.callbacks", level="ERROR"):
            report = await dispatcher.dispatch(self.batch)

        self.assertEqual(report.delivered, 5)
