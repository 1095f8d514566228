"""Checkout app tests."""

from decimal import Decimal
from functools import partial
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase

from artworks.models import Artist, Artwork
from artworks.serializers import ArtworkSerializer
from cart.store import ArtworkSnapshot, CartStore, LineItem
from orders.models import Order
from payments.host import ButtonHost
from payments.exceptions import SdkBusyError
from payments.sdk import SdkNamespace, acquire, release
from payments.tests import FakeSdk
from payments.widget import PaymentWidget

from .backends import HttpOrdersBackend, LocalOrdersBackend
from .exceptions import (
	AuthenticationRequired,
	BackendError,
	CheckoutStateError,
	CheckoutValidationError,
	OrderSubmissionError,
	PaymentConfirmationError,
	PaymentFailedError,
)
from .forms import INVALID_CART_MESSAGE
from .orchestrator import CheckoutOrchestrator
from .state import (
	Filling,
	OrderCreated,
	PaymentInProgress,
	PaymentReconciled,
	check_transition,
)
from .tokens import TokenStorage

FORM = {
	'customerName': 'Grace Hopper',
	'customerEmail': ' Grace@Example.com ',
	'address': {
		'street': '1 Harbor Way',
		'city': 'Arlington',
		'state': 'VA',
		'zipCode': '22201',
		'country': 'United States',
	},
	'paymentMethod': 'paypal',
	'shippingNotes': ' Leave at the door ',
}


def artwork(artwork_id, price):
	return ArtworkSnapshot.from_dict({'id': artwork_id, 'title': f'Work {artwork_id}', 'price': price})


class FakeWidget:
	def __init__(self, on_success, on_error, on_cancel):
		self.on_success = on_success
		self.on_error = on_error
		self.on_cancel = on_cancel
		self.mounts = []
		self.unmounts = 0
		self.mounted = False

	def mount(self, host, amount, currency, intent):
		self.mounts.append((amount, currency, intent))
		self.mounted = True
		return True

	def unmount(self):
		self.unmounts += 1
		self.mounted = False


class FakeBackend:
	def __init__(self, order_id=42):
		self.order_id = order_id
		self.created = []
		self.payments = []
		self.create_error = None
		self.payment_error = None
		self.on_create = None
		self.on_payment = None

	def create_order(self, payload):
		self.created.append(payload)
		if self.on_create:
			self.on_create()
		if self.create_error:
			raise self.create_error
		return {'id': self.order_id, 'status': 'pending'}

	def update_payment(self, order_id, payload):
		self.payments.append((order_id, payload))
		if self.on_payment:
			self.on_payment()
		if self.payment_error:
			raise self.payment_error
		return {'id': order_id, 'status': 'paid'}


class StubCart:
	"""A cart whose lines bypass the store's own guards."""

	def __init__(self, items):
		self.items = items
		self.cleared = 0

	def is_empty(self):
		return not self.items

	def get_total_price(self):
		return sum((item.artwork.unit_price * item.quantity for item in self.items), Decimal('0'))

	def clear_cart(self):
		self.cleared += 1
		self.items = []


class OrchestratorTests(SimpleTestCase):
	def setUp(self):
		self.cart = CartStore({})
		self.cart.add_to_cart(artwork(1, '100.00'), quantity=2)
		self.cart.add_to_cart(artwork(2, '50.00'))
		self.backend = FakeBackend()
		self.visited = []

	def orchestrator(self, cart=None):
		return CheckoutOrchestrator(
			cart or self.cart,
			self.backend,
			ButtonHost(),
			navigate=self.visited.append,
			widget_factory=FakeWidget,
			currency='usd',
			intent='capture',
		)

	def submitted(self):
		checkout = self.orchestrator()
		checkout.submit(FORM)
		return checkout

	def test_empty_cart_redirects_and_never_creates_order(self):
		checkout = self.orchestrator(CartStore({}))
		self.assertEqual(checkout.redirect_target(), '/')

		with self.assertRaises(CheckoutValidationError):
			checkout.submit(FORM)
		self.assertEqual(self.backend.created, [])
		self.assertEqual(checkout.state, Filling())

	def test_non_empty_cart_renders_checkout(self):
		self.assertIsNone(self.orchestrator().redirect_target())

	def test_zero_quantity_line_rejects_whole_submission(self):
		cart = StubCart([LineItem(artwork(1, '100.00'), 1), LineItem(artwork(2, '50.00'), 0)])
		checkout = self.orchestrator(cart)

		with self.assertRaises(CheckoutValidationError) as ctx:
			checkout.submit(FORM)
		self.assertEqual(ctx.exception.message, INVALID_CART_MESSAGE)
		self.assertEqual(self.backend.created, [])

	def test_non_positive_price_rejects_submission(self):
		cart = StubCart([LineItem(ArtworkSnapshot(id=3, title='Free', price='0.00'), 1)])
		with self.assertRaises(CheckoutValidationError):
			self.orchestrator(cart).submit(FORM)
		self.assertEqual(self.backend.created, [])

	def test_form_errors_keep_filling(self):
		checkout = self.orchestrator()
		bad = dict(FORM, customerName='G', address=dict(FORM['address'], zipCode='12'))

		with self.assertRaises(CheckoutValidationError) as ctx:
			checkout.submit(bad)
		self.assertIn('customerName', ctx.exception.errors)
		self.assertIn('zipCode', ctx.exception.errors['address'])
		self.assertEqual(checkout.state, Filling())
		self.assertEqual(self.backend.created, [])

	def test_submit_builds_payload_and_starts_payment(self):
		checkout = self.submitted()

		self.assertEqual(self.backend.created, [{
			'customerName': 'Grace Hopper',
			'customerEmail': 'grace@example.com',
			'customerAddress': '1 Harbor Way, Arlington, VA, 22201, United States',
			'shippingNotes': 'Leave at the door',
			'paymentMethod': 'paypal',
			'items': [
				{'artworkId': 1, 'quantity': 2, 'price': '100.00'},
				{'artworkId': 2, 'quantity': 1, 'price': '50.00'},
			],
			'totalAmount': '250.00',
		}])
		self.assertEqual(checkout.state, PaymentInProgress(order_id=42, amount='250.00', currency='USD'))
		self.assertEqual(checkout.widget.mounts, [('250.00', 'USD', 'CAPTURE')])
		self.assertEqual(self.cart.get_total_items(), 3)

	def test_amount_is_fixed_at_submission(self):
		checkout = self.submitted()
		self.cart.add_to_cart(artwork(9, '999.00'))
		checkout.on_payment_cancel()
		checkout.retry_payment()
		self.assertEqual(checkout.widget.mounts[-1][0], '250.00')

	def test_successful_payment_reconciles_then_clears_cart(self):
		checkout = self.submitted()
		self.backend.on_payment = lambda: self.assertEqual(self.cart.get_total_items(), 3)

		checkout.on_payment_success('PAY-1')

		self.assertEqual(self.backend.payments, [
			(42, {'paymentId': 'PAY-1', 'paymentMethod': 'paypal', 'status': 'completed'}),
		])
		self.assertTrue(self.cart.is_empty())
		self.assertEqual(checkout.widget.unmounts, 1)
		self.assertEqual(checkout.state, PaymentReconciled(order_id=42, amount='250.00', currency='USD', payment_id='PAY-1'))
		self.assertEqual(self.visited, ['/artworks'])
		self.assertIsNone(checkout.error)

	def test_failed_capture_keeps_order_for_retry(self):
		checkout = self.submitted()

		checkout.on_payment_error('Payment not completed (status: PENDING)')

		self.assertIsInstance(checkout.error, PaymentFailedError)
		self.assertEqual(checkout.state.order_id, 42)
		self.assertIsInstance(checkout.state, OrderCreated)
		self.assertEqual(self.cart.get_total_items(), 3)
		self.assertEqual(self.backend.payments, [])

		checkout.retry_payment()
		self.assertEqual(len(self.backend.created), 1)
		self.assertEqual(len(checkout.widget.mounts), 2)
		self.assertIsInstance(checkout.state, PaymentInProgress)

	def test_cancel_allows_retry_without_new_order(self):
		checkout = self.submitted()
		checkout.on_payment_cancel()

		self.assertEqual(checkout.state, OrderCreated(
			order_id=42,
			amount='250.00',
			currency='USD',
			message='Payment was cancelled. You can try again when you are ready.',
		))
		self.assertIsNotNone(checkout.notice)
		checkout.retry_payment()
		self.assertEqual(len(self.backend.created), 1)

	def test_confirmation_failure_is_distinct_and_keeps_cart(self):
		checkout = self.submitted()
		self.backend.payment_error = BackendError()

		with self.assertLogs('checkout.orchestrator', level='ERROR'):
			checkout.on_payment_success('PAY-2')

		self.assertIsInstance(checkout.error, PaymentConfirmationError)
		self.assertEqual(checkout.error.payment_id, 'PAY-2')
		self.assertIn('PAY-2', checkout.error.message)
		self.assertEqual(self.cart.get_total_items(), 3)
		self.assertEqual(self.visited, [])
		self.assertEqual(checkout.state, PaymentInProgress(order_id=42, amount='250.00', currency='USD', payment_id='PAY-2'))

		with self.assertRaises(CheckoutStateError):
			checkout.retry_payment()
		checkout.on_payment_error('late error')
		self.assertIsInstance(checkout.error, PaymentConfirmationError)
		self.assertEqual(len(self.backend.payments), 1)

	def test_busy_payment_sdk_keeps_order_for_retry(self):
		checkout = self.orchestrator()
		mount = checkout.widget.mount
		checkout.widget.mount = mock.Mock(side_effect=SdkBusyError())

		with self.assertLogs('checkout.orchestrator', level='WARNING'):
			checkout.submit(FORM)

		self.assertIsInstance(checkout.state, OrderCreated)
		self.assertEqual(checkout.state.order_id, 42)
		self.assertIsInstance(checkout.error, PaymentFailedError)
		self.assertEqual(checkout.error.message, SdkBusyError.default_message)

		checkout.widget.mount = mount
		checkout.retry_payment()
		self.assertIsInstance(checkout.state, PaymentInProgress)
		self.assertEqual(len(self.backend.created), 1)
		self.assertEqual(checkout.widget.mounts, [('250.00', 'USD', 'CAPTURE')])

	def test_payment_id_is_trimmed_everywhere(self):
		checkout = self.submitted()
		self.backend.payment_error = BackendError()

		with self.assertLogs('checkout.orchestrator', level='ERROR'):
			checkout.on_payment_success('  PAY-3 ')

		self.assertEqual(self.backend.payments[0][1]['paymentId'], 'PAY-3')
		self.assertEqual(checkout.state.payment_id, 'PAY-3')
		self.assertEqual(checkout.error.payment_id, 'PAY-3')
		self.assertIn('quote payment id PAY-3.', checkout.error.message)

	def test_second_submit_while_in_flight_is_refused(self):
		checkout = self.orchestrator()
		refused = []

		def resubmit():
			with self.assertRaises(CheckoutStateError):
				checkout.submit(FORM)
			refused.append(True)

		self.backend.on_create = resubmit
		checkout.submit(FORM)

		self.assertEqual(refused, [True])
		self.assertEqual(len(self.backend.created), 1)
		with self.assertRaises(CheckoutStateError):
			checkout.submit(FORM)

	def test_order_creation_failure_allows_resubmit(self):
		checkout = self.orchestrator()
		self.backend.create_error = BackendError('Artwork is sold', status_code=400)

		with self.assertRaises(OrderSubmissionError) as ctx:
			checkout.submit(FORM)
		self.assertEqual(ctx.exception.message, 'Artwork is sold')
		self.assertEqual(checkout.state, Filling())

		self.backend.create_error = BackendError()
		with self.assertRaises(OrderSubmissionError) as ctx:
			checkout.submit(FORM)
		self.assertEqual(ctx.exception.message, 'Failed to create order. Please try again.')

		self.backend.create_error = None
		checkout.submit(FORM)
		self.assertIsInstance(checkout.state, PaymentInProgress)

	def test_stray_success_before_order_is_ignored(self):
		checkout = self.orchestrator()
		with self.assertLogs('checkout.orchestrator', level='WARNING'):
			checkout.on_payment_success('PAY-X')
		self.assertEqual(self.backend.payments, [])
		self.assertEqual(checkout.state, Filling())

	def test_close_unmounts_widget(self):
		checkout = self.submitted()
		checkout.close()
		self.assertEqual(checkout.widget.unmounts, 1)


class StateTests(SimpleTestCase):
	def test_illegal_moves(self):
		with self.assertRaises(CheckoutStateError):
			check_transition(Filling(), PaymentReconciled(1, '1.00', 'USD', 'P'))
		with self.assertRaises(CheckoutStateError):
			check_transition(PaymentReconciled(1, '1.00', 'USD', 'P'), Filling())
		with self.assertRaises(CheckoutStateError):
			check_transition(OrderCreated(1, '1.00', 'USD'), PaymentInProgress(2, '1.00', 'USD'))

	def test_legal_moves(self):
		created = OrderCreated(1, '1.00', 'USD')
		paying = check_transition(created, PaymentInProgress(1, '1.00', 'USD'))
		self.assertEqual(check_transition(paying, OrderCreated(1, '1.00', 'USD')).order_id, 1)


def fake_response(status_code, payload=None, text=''):
	response = mock.Mock()
	response.status_code = status_code
	response.ok = 200 <= status_code < 300
	response.text = text
	if payload is None:
		response.json.side_effect = ValueError('no json')
	else:
		response.json.return_value = payload
	return response


class HttpOrdersBackendTests(SimpleTestCase):
	def setUp(self):
		self.storage = {'auth_token': 'jwt-abc'}
		self.session = mock.Mock()
		self.backend = HttpOrdersBackend('http://shop.test/api/', TokenStorage(self.storage), session=self.session)

	def test_create_order_sends_bearer_token(self):
		self.session.request.return_value = fake_response(201, {'id': 42})

		self.assertEqual(self.backend.create_order({'items': []}), {'id': 42})

		args, kwargs = self.session.request.call_args
		self.assertEqual(args, ('POST', 'http://shop.test/api/orders/'))
		self.assertEqual(kwargs['headers']['Authorization'], 'Bearer jwt-abc')
		self.assertEqual(kwargs['json'], {'items': []})

	def test_update_payment_path(self):
		self.session.request.return_value = fake_response(200, {'id': 42, 'status': 'paid'})
		self.backend.update_payment(42, {'paymentId': 'PAY-1'})
		args, _ = self.session.request.call_args
		self.assertEqual(args, ('PATCH', 'http://shop.test/api/orders/42/payment/'))

	def test_missing_token_makes_no_request(self):
		backend = HttpOrdersBackend('http://shop.test/api', TokenStorage({}), session=self.session)
		with self.assertRaises(AuthenticationRequired):
			backend.create_order({})
		self.session.request.assert_not_called()

	def test_error_messages(self):
		self.session.request.return_value = fake_response(400, {'message': 'Order total does not match current prices.'})
		with self.assertLogs('checkout.backends', level='WARNING'):
			with self.assertRaises(BackendError) as ctx:
				self.backend.create_order({})
		self.assertEqual(ctx.exception.server_message, 'Order total does not match current prices.')
		self.assertEqual(ctx.exception.status_code, 400)

		self.session.request.return_value = fake_response(404, {'detail': 'Not found.'})
		with self.assertLogs('checkout.backends', level='WARNING'):
			with self.assertRaises(BackendError) as ctx:
				self.backend.update_payment(7, {})
		self.assertEqual(ctx.exception.message, 'Not found.')

		self.session.request.return_value = fake_response(502, {})
		with self.assertLogs('checkout.backends', level='WARNING'):
			with self.assertRaises(BackendError) as ctx:
				self.backend.create_order({})
		self.assertEqual(ctx.exception.message, 'Server error: 502')

	def test_expired_token(self):
		self.session.request.return_value = fake_response(401, {'detail': 'Token is invalid or expired'})
		with self.assertRaises(AuthenticationRequired):
			self.backend.create_order({})

	def test_network_failure_has_no_server_message(self):
		self.session.request.side_effect = requests.ConnectionError('refused')
		with self.assertLogs('checkout.backends', level='ERROR'):
			with self.assertRaises(BackendError) as ctx:
				self.backend.create_order({})
		self.assertIsNone(ctx.exception.server_message)


class CheckoutIntegrationTests(TestCase):
	"""Cart to paid order with the real widget, the in-process backend and a fake SDK."""

	@classmethod
	def setUpTestData(cls):
		cls.user = get_user_model().objects.create_user(username='grace', email='grace@example.com', password='12345678')
		artist = Artist.objects.create(name='Lee Krasner')
		cls.first = Artwork.objects.create(artist=artist, title='Gaea', price=Decimal('100.00'))
		cls.second = Artwork.objects.create(artist=artist, title='Polar Stampede', price=Decimal('50.00'))

	def setUp(self):
		self.cart = CartStore({})
		self.cart.add_to_cart(ArtworkSerializer(self.first).data, quantity=2)
		self.cart.add_to_cart(ArtworkSerializer(self.second).data)
		self.sdk = FakeSdk()
		self.namespace = SdkNamespace()
		self.visited = []
		self.checkout = CheckoutOrchestrator(
			self.cart,
			LocalOrdersBackend(self.user),
			ButtonHost(),
			navigate=self.visited.append,
			widget_factory=partial(
				PaymentWidget,
				'client-123',
				script_loader=lambda url: self.sdk,
				namespace=self.namespace,
			),
			currency='USD',
			intent='CAPTURE',
		)

	def test_cart_to_paid_order(self):
		self.checkout.submit(FORM)
		order = Order.objects.get(pk=self.checkout.state.order_id)
		self.assertEqual(order.total_amount, Decimal('250.00'))
		self.assertEqual(self.sdk.created_orders[0]['purchase_units'][0]['amount'], {'value': '250.00', 'currency_code': 'USD'})

		self.sdk.instances[-1].approve()

		order.refresh_from_db()
		self.assertEqual(order.status, Order.Status.PAID)
		self.assertEqual(order.payment_id, 'PP-1')
		self.assertIsInstance(self.checkout.state, PaymentReconciled)
		self.assertTrue(self.cart.is_empty())
		self.assertEqual(self.visited, ['/artworks'])
		self.assertEqual(self.checkout.host.frames, [])
		self.first.refresh_from_db()
		self.assertEqual(self.first.availability, Artwork.Availability.SOLD)

	def test_declined_capture_leaves_order_pending(self):
		self.sdk.capture_result = {'status': 'DECLINED'}
		self.checkout.submit(FORM)
		self.sdk.instances[-1].approve()

		self.assertIsInstance(self.checkout.state, OrderCreated)
		self.assertIsInstance(self.checkout.error, PaymentFailedError)
		self.assertEqual(Order.objects.get().status, Order.Status.PENDING)
		self.assertEqual(self.cart.get_total_items(), 3)

		self.sdk.capture_result = {'status': 'COMPLETED'}
		self.checkout.retry_payment()
		self.sdk.instances[-1].approve()
		self.assertIsInstance(self.checkout.state, PaymentReconciled)
		self.assertEqual(Order.objects.count(), 1)

	def test_ineligible_funding_keeps_order(self):
		self.sdk.eligible = False
		self.checkout.submit(FORM)
		self.assertIsInstance(self.checkout.state, OrderCreated)
		self.assertEqual(self.checkout.error.message, 'PayPal payment method not available')

	def test_order_survives_buttons_held_by_another_checkout(self):
		other = object()
		acquire(other, self.namespace)

		with self.assertLogs('checkout.orchestrator', level='WARNING'):
			self.checkout.submit(FORM)

		self.assertIsInstance(self.checkout.state, OrderCreated)
		self.assertEqual(Order.objects.count(), 1)
		self.assertEqual(self.sdk.instances, [])

		release(other, self.namespace)
		self.checkout.retry_payment()
		self.sdk.instances[-1].approve()

		self.assertIsInstance(self.checkout.state, PaymentReconciled)
		self.assertEqual(Order.objects.get().status, Order.Status.PAID)
		self.assertEqual(Order.objects.count(), 1)

	def test_anonymous_user_needs_to_sign_in(self):
		from django.contrib.auth.models import AnonymousUser

		self.checkout.backend = LocalOrdersBackend(AnonymousUser())
		with self.assertRaises(AuthenticationRequired):
			self.checkout.submit(FORM)
		self.assertEqual(self.checkout.state, Filling())
		self.assertFalse(Order.objects.exists())
