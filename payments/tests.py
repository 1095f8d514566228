"""Payments app tests."""

from decimal import Decimal
from unittest import mock

import requests
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from .exceptions import PayPalError, SdkBusyError
from .host import ButtonHost, Frame
from .paypal import PayPalClient, approval_url, order_body
from .sdk import PayPalSdk, SdkNamespace, load_sdk, sdk_script_url
from .widget import PaymentWidget


class FakeOrderActions:
	def __init__(self, sdk, order_id=None):
		self.sdk = sdk
		self.order_id = order_id

	def create(self, body):
		self.sdk.created_orders.append(body)
		self.order_id = f'PP-{len(self.sdk.created_orders)}'
		return self.order_id

	def capture(self):
		if isinstance(self.sdk.capture_result, Exception):
			raise self.sdk.capture_result
		return {'id': self.order_id, **self.sdk.capture_result}


class FakeActions:
	def __init__(self, sdk, order_id=None):
		self.order = FakeOrderActions(sdk, order_id)


class FakeButtons:
	def __init__(self, sdk, options):
		self.sdk = sdk
		self.options = options
		self.closed = False
		self.order_id = None

	def is_eligible(self):
		return self.sdk.eligible

	def render(self, host):
		self.order_id = self.options['create_order']({}, FakeActions(self.sdk))
		host.inject(Frame(src=f'https://www.sandbox.paypal.com/checkoutnow?token={self.order_id}'))

	def approve(self):
		return self.options['on_approve']({'orderID': self.order_id}, FakeActions(self.sdk, self.order_id))

	def cancel(self):
		self.options['on_cancel']({'orderID': self.order_id})

	def close(self):
		self.closed = True


class FakeSdk:
	"""Stands in for the browser SDK; captures complete unless told otherwise."""

	def __init__(self, eligible=True):
		self.eligible = eligible
		self.instances = []
		self.created_orders = []
		self.capture_result = {'status': 'COMPLETED'}

	def buttons(self, options):
		instance = FakeButtons(self, options)
		self.instances.append(instance)
		return instance


class Recorder:
	def __init__(self):
		self.successes = []
		self.errors = []
		self.cancels = 0

	def callbacks(self):
		return {
			'on_success': self.successes.append,
			'on_error': self.errors.append,
			'on_cancel': self.cancel,
		}

	def cancel(self):
		self.cancels += 1


class PaymentWidgetTests(SimpleTestCase):
	def setUp(self):
		self.namespace = SdkNamespace()
		self.sdk = FakeSdk()
		self.loads = []
		self.recorder = Recorder()
		self.host = ButtonHost()

	def loader(self, url):
		self.loads.append(url)
		return self.sdk

	def widget(self, **overrides):
		options = {'script_loader': self.loader, 'namespace': self.namespace, **self.recorder.callbacks()}
		options.update(overrides)
		return PaymentWidget('client-123', **options)

	def test_mount_renders_single_purchase_unit(self):
		widget = self.widget()
		self.assertTrue(widget.mount(self.host, Decimal('250'), 'usd', 'capture'))

		self.assertEqual(self.sdk.created_orders, [{
			'intent': 'CAPTURE',
			'purchase_units': [{'amount': {'value': '250.00', 'currency_code': 'USD'}}],
		}])
		self.assertEqual(len(self.host.frames_from('paypal.com')), 1)
		self.assertEqual(len(self.loads), 1)
		self.assertIn('client-id=client-123', self.loads[0])
		self.assertIn('currency=USD', self.loads[0])

	def test_update_tears_down_before_rerender(self):
		widget = self.widget()
		widget.mount(self.host, '100.00', 'USD')
		first = self.sdk.instances[0]

		self.assertFalse(widget.update(amount='100.00'))
		self.assertEqual(len(self.sdk.instances), 1)

		self.assertTrue(widget.update(amount='80.00'))
		self.assertTrue(first.closed)
		self.assertEqual(len(self.sdk.instances), 2)
		self.assertEqual(self.sdk.created_orders[-1]['purchase_units'][0]['amount']['value'], '80.00')
		self.assertEqual([f.src for f in self.host.frames], ['https://www.sandbox.paypal.com/checkoutnow?token=PP-2'])

		widget.update(currency='EUR')
		self.assertEqual(self.sdk.created_orders[-1]['purchase_units'][0]['amount']['currency_code'], 'EUR')
		self.assertEqual(len(self.host.frames), 1)

	def test_unmount_cleans_up_and_releases(self):
		self.host.inject(Frame(src='https://cdn.example.com/widget.html'))
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')

		widget.unmount()

		self.assertTrue(self.sdk.instances[0].closed)
		self.assertEqual([f.src for f in self.host.frames], ['https://cdn.example.com/widget.html'])
		self.assertIsNone(self.namespace.owner)
		self.assertFalse(widget.mounted)

	def test_second_widget_cannot_share_sdk(self):
		first = self.widget()
		first.mount(self.host, '10.00', 'USD')

		second = self.widget()
		with self.assertRaises(SdkBusyError):
			second.mount(ButtonHost('other'), '20.00', 'USD')

		first.unmount()
		self.assertTrue(second.mount(ButtonHost('other'), '20.00', 'USD'))
		self.assertEqual(len(self.loads), 1)

	def test_remount_is_idempotent(self):
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')
		widget.mount(self.host, '10.00', 'USD')

		self.assertTrue(self.sdk.instances[0].closed)
		self.assertEqual(len(self.host.frames), 1)

	def test_load_failure_is_remembered(self):
		def broken(url):
			self.loads.append(url)
			raise OSError('network down')

		widget = self.widget(script_loader=broken)
		with self.assertLogs('payments.sdk', level='ERROR'):
			self.assertFalse(widget.mount(self.host, '10.00', 'USD'))
		self.assertFalse(widget.mount(self.host, '10.00', 'USD'))

		self.assertEqual(len(self.loads), 1)
		self.assertEqual(self.recorder.errors, ['Failed to load PayPal SDK'] * 2)
		self.assertIsNone(self.namespace.owner)

	def test_missing_entry_point_is_load_error(self):
		widget = self.widget(script_loader=lambda url: object())
		with self.assertLogs('payments.sdk', level='ERROR'):
			widget.mount(self.host, '10.00', 'USD')
		self.assertEqual(self.recorder.errors, ['PayPal Buttons component not available'])
		self.assertIsNone(self.namespace.sdk)

	def test_existing_sdk_is_reused(self):
		self.namespace.sdk = self.sdk
		self.namespace.loaded_with = ('USD', 'CAPTURE')
		self.widget().mount(self.host, '10.00', 'USD')
		self.assertEqual(self.loads, [])

	def test_currency_change_reloads_sdk(self):
		sdks = {}

		def loader(url):
			self.loads.append(url)
			return sdks.setdefault(url, FakeSdk())

		widget = self.widget(script_loader=loader)
		widget.mount(self.host, '10.00', 'USD')
		dollar_sdk = widget.sdk

		self.assertTrue(widget.update(currency='eur'))

		self.assertEqual(len(self.loads), 2)
		self.assertIn('currency=EUR', self.loads[1])
		self.assertEqual(self.namespace.scripts, [self.loads[1]])
		self.assertEqual(self.namespace.loaded_with, ('EUR', 'CAPTURE'))
		self.assertIsNot(widget.sdk, dollar_sdk)
		self.assertTrue(dollar_sdk.instances[0].closed)
		self.assertEqual(widget.sdk.created_orders, [{
			'intent': 'CAPTURE',
			'purchase_units': [{'amount': {'value': '10.00', 'currency_code': 'EUR'}}],
		}])
		self.assertEqual(len(self.host.frames), 1)

		self.assertTrue(widget.update(amount='12.00'))
		self.assertEqual(len(self.loads), 2)

	def test_failed_reload_releases_sdk(self):
		def loader(url):
			self.loads.append(url)
			if 'currency=EUR' in url:
				raise OSError('blocked')
			return self.sdk

		widget = self.widget(script_loader=loader)
		widget.mount(self.host, '10.00', 'USD')
		with self.assertLogs('payments.sdk', level='ERROR'):
			self.assertFalse(widget.update(currency='EUR'))

		self.assertEqual(self.recorder.errors, ['Failed to load PayPal SDK'])
		self.assertFalse(widget.mounted)
		self.assertIsNone(self.namespace.owner)
		self.assertEqual(self.host.frames, [])
		self.assertTrue(self.sdk.instances[0].closed)

	def test_ineligible_reports_error(self):
		self.sdk.eligible = False
		widget = self.widget()
		self.assertFalse(widget.mount(self.host, '10.00', 'USD'))
		self.assertEqual(self.recorder.errors, ['PayPal payment method not available'])
		self.assertEqual(self.host.frames, [])

	def test_completed_capture_signals_success(self):
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')
		self.sdk.instances[0].approve()
		self.assertEqual(self.recorder.successes, ['PP-1'])
		self.assertEqual(self.recorder.errors, [])

	def test_non_completed_capture_is_error(self):
		self.sdk.capture_result = {'status': 'PENDING'}
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')
		self.sdk.instances[0].approve()
		self.assertEqual(self.recorder.successes, [])
		self.assertEqual(self.recorder.errors, ['Payment not completed (status: PENDING)'])

	def test_capture_exception_is_error(self):
		self.sdk.capture_result = PayPalError('INSTRUMENT_DECLINED')
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')
		with self.assertLogs('payments.widget', level='ERROR'):
			self.sdk.instances[0].approve()
		self.assertEqual(self.recorder.successes, [])
		self.assertEqual(self.recorder.errors, ['Payment capture failed: INSTRUMENT_DECLINED'])

	def test_cancel_is_forwarded(self):
		widget = self.widget()
		widget.mount(self.host, '10.00', 'USD')
		self.sdk.instances[0].cancel()
		self.assertEqual(self.recorder.cancels, 1)


class ButtonHostTests(SimpleTestCase):
	def test_remove_frames_matches_domain_and_subdomains_only(self):
		host = ButtonHost()
		for src in (
			'https://www.paypal.com/checkoutnow',
			'https://paypal.com/x',
			'https://evilpaypal.com/x',
			'https://example.com/?next=paypal.com',
		):
			host.inject(Frame(src=src))

		self.assertEqual(host.remove_frames('paypal.com'), 2)
		self.assertEqual(
			[f.src for f in host.frames],
			['https://evilpaypal.com/x', 'https://example.com/?next=paypal.com'],
		)


def fake_response(status_code=200, payload=None):
	response = mock.Mock()
	response.status_code = status_code
	response.ok = 200 <= status_code < 300
	response.json.return_value = payload if payload is not None else {}
	if response.ok:
		response.raise_for_status.return_value = None
	else:
		response.raise_for_status.side_effect = requests.HTTPError(f'{status_code}')
	return response


class PayPalClientTests(SimpleTestCase):
	def setUp(self):
		self.session = mock.Mock()
		self.session.post.return_value = fake_response(payload={'access_token': 'tok', 'expires_in': 3600})
		self.client = PayPalClient('id', 'secret', mode='sandbox', session=self.session)

	def test_token_is_cached(self):
		self.session.request.return_value = fake_response(payload={'id': 'PP-9', 'status': 'CREATED'})

		self.client.create_order(order_body('10', 'usd'))
		self.client.get_order('PP-9')

		self.assertEqual(self.session.post.call_count, 1)
		method, url = self.session.request.call_args_list[0][0]
		self.assertEqual((method, url), ('POST', 'https://api-m.sandbox.paypal.com/v2/checkout/orders'))
		body = self.session.request.call_args_list[0][1]['json']
		self.assertEqual(body['purchase_units'][0]['amount'], {'currency_code': 'USD', 'value': '10.00'})
		headers = self.session.request.call_args_list[0][1]['headers']
		self.assertEqual(headers['Authorization'], 'Bearer tok')

	def test_live_mode_url(self):
		self.assertEqual(PayPalClient('a', 'b', mode='live').api_url, 'https://api-m.paypal.com')

	def test_error_response_raises(self):
		self.session.request.return_value = fake_response(422, {'message': 'Order not approved', 'debug_id': 'dbg'})
		with self.assertLogs('payments.paypal', level='ERROR'):
			with self.assertRaises(PayPalError) as ctx:
				self.client.capture_order('PP-9')
		self.assertEqual(ctx.exception.status_code, 422)
		self.assertEqual(ctx.exception.debug_id, 'dbg')

	def test_token_failure(self):
		self.session.post.return_value = fake_response(401)
		with self.assertLogs('payments.paypal', level='ERROR'):
			with self.assertRaises(PayPalError):
				self.client.generate_client_token()

	def test_token_response_that_is_not_json(self):
		self.session.post.return_value = fake_response()
		self.session.post.return_value.json.side_effect = ValueError('Expecting value')
		with self.assertLogs('payments.paypal', level='ERROR'):
			with self.assertRaises(PayPalError) as ctx:
				self.client.create_order(order_body('10', 'usd'))
		self.assertEqual(ctx.exception.message, 'PayPal API returned an unreadable token response')
		self.session.request.assert_not_called()

	def test_unconfigured_client(self):
		with self.assertRaises(PayPalError):
			PayPalClient('', '').get_access_token()

	def test_approval_url(self):
		order = {'links': [{'rel': 'self', 'href': 'a'}, {'rel': 'approve', 'href': 'b'}]}
		self.assertEqual(approval_url(order), 'b')
		self.assertIsNone(approval_url({}))


class PayPalSdkTests(SimpleTestCase):
	def test_buttons_create_order_and_capture_through_rest(self):
		client = mock.Mock(client_id='id')
		client.create_order.return_value = {
			'id': 'PP-7',
			'links': [{'rel': 'approve', 'href': 'https://www.sandbox.paypal.com/checkoutnow?token=PP-7'}],
		}
		client.capture_order.return_value = {'id': 'PP-7', 'status': 'COMPLETED'}
		recorder = Recorder()
		namespace = SdkNamespace()
		sdk = PayPalSdk(client, currency='USD', intent='CAPTURE')
		widget = PaymentWidget('id', script_loader=lambda url: sdk, namespace=namespace, **recorder.callbacks())
		host = ButtonHost()

		self.assertTrue(widget.mount(host, '42.00', 'USD'))
		client.create_order.assert_called_once_with({
			'intent': 'CAPTURE',
			'purchase_units': [{'amount': {'value': '42.00', 'currency_code': 'USD'}}],
		})
		self.assertEqual(host.frames[0].name, 'paypal-checkout-PP-7')

		widget.buttons.approve()
		client.capture_order.assert_called_once_with('PP-7')
		self.assertEqual(recorder.successes, ['PP-7'])

	def test_unsupported_intent_is_not_eligible(self):
		sdk = PayPalSdk(mock.Mock(client_id='id'), intent='subscription')
		self.assertFalse(sdk.buttons({}).is_eligible())

	@override_settings(PAYPAL_CLIENT_ID='id', PAYPAL_CLIENT_SECRET='secret', PAYPAL_MODE='sandbox')
	def test_default_loader_builds_sdk_from_script_url(self):
		namespace = SdkNamespace()
		sdk = load_sdk('id', 'eur', 'capture', namespace=namespace)
		self.assertIsInstance(sdk, PayPalSdk)
		self.assertEqual((sdk.currency, sdk.intent), ('EUR', 'CAPTURE'))
		self.assertIs(namespace.sdk, sdk)
		self.assertEqual(namespace.scripts, [sdk_script_url('id', 'eur', 'capture')])


class PayPalProxyViewTests(TestCase):
	def setUp(self):
		self.client = APIClient()
		patcher = mock.patch('payments.views.PayPalClient.from_settings')
		self.paypal = patcher.start().return_value
		self.addCleanup(patcher.stop)

	def test_setup_returns_client_token(self):
		self.paypal.generate_client_token.return_value = 'ctok'
		res = self.client.get('/paypal/setup')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.json(), {'clientToken': 'ctok'})

	def test_create_order(self):
		self.paypal.create_order.return_value = {'id': 'PP-1', 'status': 'CREATED'}
		res = self.client.post('/paypal/order', {'amount': '99.5', 'currency': 'usd', 'intent': 'CAPTURE'}, format='json')
		self.assertEqual(res.status_code, 201, res.content)
		self.paypal.create_order.assert_called_once_with(order_body(Decimal('99.50'), 'usd', 'CAPTURE'))

	def test_create_order_rejects_bad_amount(self):
		res = self.client.post('/paypal/order', {'amount': '-1', 'currency': 'USD', 'intent': 'CAPTURE'}, format='json')
		self.assertEqual(res.status_code, 400)
		self.paypal.create_order.assert_not_called()

	def test_capture_failure(self):
		self.paypal.capture_order.side_effect = PayPalError('boom')
		res = self.client.post('/paypal/order/PP-1/capture')
		self.assertEqual(res.status_code, 500)
		self.assertEqual(res.json(), {'error': 'Failed to capture order.'})

	def test_capture(self):
		self.paypal.capture_order.return_value = {'id': 'PP-1', 'status': 'COMPLETED'}
		res = self.client.post('/paypal/order/PP-1/capture')
		self.assertEqual(res.status_code, 200)
		self.paypal.capture_order.assert_called_once_with('PP-1')
