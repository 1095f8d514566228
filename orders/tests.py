"""Orders app tests."""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from artworks.models import Artist, Artwork

from . import services
from .models import Order


def order_payload(*lines, total, **overrides):
	payload = {
		'customerName': 'Grace Hopper',
		'customerEmail': 'Grace@Example.com',
		'customerAddress': '1 Harbor Way, Arlington, VA, 22201, USA',
		'shippingNotes': '',
		'paymentMethod': 'paypal',
		'items': [
			{'artworkId': artwork.id, 'quantity': quantity, 'price': str(artwork.price)}
			for artwork, quantity in lines
		],
		'totalAmount': total,
	}
	payload.update(overrides)
	return payload


@override_settings(ALLOWED_HOSTS=['testserver'])
class OrderApiTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(username='grace', email='grace@example.com', password='12345678')
		cls.other = User.objects.create_user(username='linus', email='linus@example.com', password='12345678')
		cls.admin = User.objects.create_user(
			username='curator',
			email='curator@example.com',
			password='12345678',
			role='admin',
		)
		cls.artist = Artist.objects.create(name='Hilma af Klint')
		cls.first = Artwork.objects.create(artist=cls.artist, title='The Ten Largest', price=Decimal('100.00'))
		cls.second = Artwork.objects.create(artist=cls.artist, title='Svanen', price=Decimal('50.00'))

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(self.customer)

	def create_order(self):
		res = self.client.post(
			'/api/orders/',
			order_payload((self.first, 2), (self.second, 1), total='250.00'),
			format='json',
		)
		self.assertEqual(res.status_code, 201, res.content)
		return res.json()

	def test_create_order(self):
		body = self.create_order()

		order = Order.objects.get(pk=body['id'])
		self.assertEqual(order.status, Order.Status.PENDING)
		self.assertEqual(order.total_amount, Decimal('250.00'))
		self.assertEqual(order.customer_email, 'grace@example.com')
		self.assertEqual(order.user, self.customer)
		self.assertEqual(order.items.count(), 2)
		self.assertEqual(body['totalAmount'], '250.00')

	def test_create_requires_authentication(self):
		self.client.force_authenticate(None)
		res = self.client.post('/api/orders/', order_payload((self.first, 1), total='100.00'), format='json')
		self.assertEqual(res.status_code, 401)

	def test_total_mismatch_rejected(self):
		res = self.client.post('/api/orders/', order_payload((self.first, 1), total='99.00'), format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('message', res.json())
		self.assertIn('totalAmount', res.json()['errors'])
		self.assertFalse(Order.objects.exists())

	def test_zero_quantity_rejected(self):
		res = self.client.post('/api/orders/', order_payload((self.first, 0), total='0.00'), format='json')
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.json()['message'], 'Invalid order data.')
		self.assertFalse(Order.objects.exists())

	def test_sold_artwork_rejected(self):
		Artwork.objects.filter(pk=self.second.pk).update(availability=Artwork.Availability.SOLD)
		res = self.client.post('/api/orders/', order_payload((self.second, 1), total='50.00'), format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('no longer available', res.json()['message'])

	def test_empty_items_rejected(self):
		res = self.client.post('/api/orders/', order_payload(total='0.00'), format='json')
		self.assertEqual(res.status_code, 400)

	def test_payment_marks_order_paid_and_artworks_sold(self):
		order_id = self.create_order()['id']

		res = self.client.patch(
			f'/api/orders/{order_id}/payment/',
			{'paymentId': 'PAY-1', 'paymentMethod': 'paypal', 'status': 'completed'},
			format='json',
		)
		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.json()['status'], 'paid')

		order = Order.objects.get(pk=order_id)
		self.assertEqual(order.payment_id, 'PAY-1')
		self.assertIsNotNone(order.paid_at)
		self.first.refresh_from_db()
		self.second.refresh_from_db()
		self.assertEqual(self.first.availability, Artwork.Availability.SOLD)
		self.assertEqual(self.second.availability, Artwork.Availability.SOLD)

	def test_payment_is_idempotent_for_same_id(self):
		order_id = self.create_order()['id']
		body = {'paymentId': 'PAY-1', 'paymentMethod': 'paypal', 'status': 'completed'}
		self.client.patch(f'/api/orders/{order_id}/payment/', body, format='json')

		res = self.client.patch(f'/api/orders/{order_id}/payment/', body, format='json')
		self.assertEqual(res.status_code, 200)

		body['paymentId'] = 'PAY-OTHER'
		res = self.client.patch(f'/api/orders/{order_id}/payment/', body, format='json')
		self.assertEqual(res.status_code, 409)
		self.assertEqual(Order.objects.get(pk=order_id).payment_id, 'PAY-1')

	def test_payment_status_must_be_completed(self):
		order_id = self.create_order()['id']
		res = self.client.patch(
			f'/api/orders/{order_id}/payment/',
			{'paymentId': 'PAY-1', 'status': 'pending'},
			format='json',
		)
		self.assertEqual(res.status_code, 400)
		self.assertIn('status', res.json()['errors'])
		self.assertEqual(Order.objects.get(pk=order_id).status, Order.Status.PENDING)

	def test_orders_scoped_to_owner(self):
		order_id = self.create_order()['id']

		other = APIClient()
		other.force_authenticate(self.other)
		self.assertEqual(other.get(f'/api/orders/{order_id}/').status_code, 404)
		self.assertEqual(other.get('/api/orders/').json()['count'], 0)
		res = other.patch(
			f'/api/orders/{order_id}/payment/',
			{'paymentId': 'PAY-X', 'status': 'completed'},
			format='json',
		)
		self.assertEqual(res.status_code, 404)

		admin = APIClient()
		admin.force_authenticate(self.admin)
		self.assertEqual(admin.get('/api/orders/').json()['count'], 1)
		self.assertEqual(self.client.get('/api/orders/').json()['results'][0]['id'], order_id)

	def test_admin_status_transitions(self):
		order_id = self.create_order()['id']
		admin = APIClient()
		admin.force_authenticate(self.admin)
		url = f'/api/orders/{order_id}/set-status/'

		self.assertEqual(admin.patch(url, {'status': 'shipped'}, format='json').status_code, 400)
		self.assertEqual(admin.patch(url, {'status': 'paid'}, format='json').status_code, 200)
		self.assertEqual(admin.patch(url, {'status': 'shipped'}, format='json').status_code, 200)
		self.assertEqual(admin.patch(url, {'status': 'delivered'}, format='json').status_code, 200)
		self.assertEqual(admin.patch(url, {'status': 'cancelled'}, format='json').status_code, 400)

		self.first.refresh_from_db()
		self.assertEqual(self.first.availability, Artwork.Availability.SOLD)

	def test_customer_cannot_set_status(self):
		order_id = self.create_order()['id']
		res = self.client.patch(f'/api/orders/{order_id}/set-status/', {'status': 'paid'}, format='json')
		self.assertEqual(res.status_code, 403)


class OrderServiceTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.artist = Artist.objects.create(name='Agnes Martin')
		cls.artwork = Artwork.objects.create(artist=cls.artist, title='Friendship', price=Decimal('80.00'))

	def data(self, price='80.00', total='80.00'):
		return {
			'customerName': 'Ada',
			'customerEmail': 'ada@example.com',
			'customerAddress': 'Somewhere',
			'items': [{'artworkId': self.artwork.id, 'quantity': 1, 'price': Decimal(price)}],
			'totalAmount': Decimal(total),
		}

	def test_stale_line_price_rejected(self):
		with self.assertRaises(services.OrderError) as ctx:
			services.create_order(None, self.data(price='70.00', total='70.00'))
		self.assertIn('price', ctx.exception.message)

	def test_cancelled_order_cannot_be_paid(self):
		order = services.create_order(None, self.data())
		services.set_status(order, Order.Status.CANCELLED)

		with self.assertRaises(services.OrderConflict):
			services.record_payment(order.pk, 'PAY-9')

	def test_unknown_order(self):
		with self.assertRaises(services.OrderNotFound):
			services.record_payment(12345, 'PAY-9')
