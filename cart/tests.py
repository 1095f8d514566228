"""Cart app tests."""

import json
import tempfile
from decimal import Decimal
from pathlib import Path

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from artworks.models import Artist, Artwork

from .storage import LocalStorage
from .store import CART_STORAGE_KEY, ArtworkSnapshot, CartStore, format_amount


def snapshot(artwork_id, price='100.00', **extra):
	return ArtworkSnapshot.from_dict({
		'id': artwork_id,
		'title': extra.pop('title', f'Work {artwork_id}'),
		'price': price,
		'imageUrl': '',
		'artist': {'id': 1, 'name': 'Ada'},
		**extra,
	})


class CartStoreTests(SimpleTestCase):
	def setUp(self):
		self.storage = {}
		self.cart = CartStore(self.storage)

	def assert_unique_ids(self):
		ids = [item.artwork.id for item in self.cart.items]
		self.assertEqual(len(ids), len(set(ids)))

	def test_totals_for_mixed_cart(self):
		self.cart.add_to_cart(snapshot(1, '100.00'), quantity=2)
		self.cart.add_to_cart(snapshot(2, '50.00'))

		self.assertEqual(self.cart.get_total_price(), Decimal('250.00'))
		self.assertEqual(self.cart.get_total_items(), 3)
		self.assertEqual(format_amount(self.cart.get_total_price()), '250.00')

	def test_adding_same_artwork_twice_bumps_quantity(self):
		self.cart.add_to_cart(snapshot(5))
		self.cart.add_to_cart(snapshot(5))

		items = self.cart.items
		self.assertEqual(len(items), 1)
		self.assertEqual(items[0].quantity, 2)

	def test_mixed_operations_never_duplicate_lines(self):
		for artwork_id in (1, 2, 1, 3, 2, 1):
			self.cart.add_to_cart(snapshot(artwork_id))
			self.assert_unique_ids()
		self.cart.update_quantity(2, 7)
		self.cart.remove_from_cart(3)
		self.cart.add_to_cart(snapshot(3))
		self.assert_unique_ids()

		self.assertEqual(self.cart.get_total_items(), sum(i.quantity for i in self.cart.items))
		self.assertEqual(
			self.cart.get_total_price(),
			sum(i.artwork.unit_price * i.quantity for i in self.cart.items),
		)

	def test_accepts_api_payload_dicts(self):
		self.cart.add_to_cart({'id': 9, 'title': 'Dusk', 'price': '12.5', 'imageUrl': '/d.jpg'})
		item = self.cart.items[0]
		self.assertEqual(item.artwork.price, '12.50')
		self.assertEqual(item.artwork.image_url, '/d.jpg')

	def test_remove_missing_id_is_noop(self):
		self.cart.add_to_cart(snapshot(1))
		before = [i.to_dict() for i in self.cart.items]

		self.cart.remove_from_cart(404)

		self.assertEqual([i.to_dict() for i in self.cart.items], before)

	def test_update_quantity_below_one_is_noop(self):
		self.cart.add_to_cart(snapshot(1))
		self.cart.update_quantity(1, 0)
		self.cart.update_quantity(1, -3)
		self.assertEqual(self.cart.items[0].quantity, 1)

		self.cart.update_quantity(1, 4)
		self.assertEqual(self.cart.items[0].quantity, 4)

	def test_clear_cart(self):
		self.cart.add_to_cart(snapshot(1))
		self.cart.add_to_cart(snapshot(2))

		self.cart.clear_cart()

		self.assertEqual(self.cart.get_total_items(), 0)
		self.assertEqual(self.cart.items, [])
		self.assertTrue(self.cart.is_empty())

	def test_items_are_copies(self):
		self.cart.add_to_cart(snapshot(1))
		self.cart.items[0].quantity = 99
		self.assertEqual(self.cart.items[0].quantity, 1)

	def test_toggle_only_flips_flag(self):
		self.cart.add_to_cart(snapshot(1))
		persisted = self.storage[CART_STORAGE_KEY]

		self.assertTrue(self.cart.toggle_cart())
		self.assertFalse(self.cart.toggle_cart())
		self.assertEqual(self.storage[CART_STORAGE_KEY], persisted)

	def test_every_mutation_is_persisted_and_reloads(self):
		self.cart.add_to_cart(snapshot(1, '10.00'), quantity=3)
		self.cart.add_to_cart(snapshot(2, '5.25'))

		reloaded = CartStore(self.storage)
		self.assertEqual([i.to_dict() for i in reloaded.items], [i.to_dict() for i in self.cart.items])
		self.assertEqual(reloaded.get_total_price(), Decimal('35.25'))

		self.cart.remove_from_cart(1)
		self.assertEqual(len(CartStore(self.storage).items), 1)


class CorruptStorageTests(SimpleTestCase):
	def assert_empty(self, raw):
		with self.assertLogs('cart.store', level='WARNING'):
			cart = CartStore({CART_STORAGE_KEY: raw})
		self.assertEqual(cart.items, [])
		self.assertEqual(cart.get_total_price(), Decimal('0'))

	def test_missing_value_is_empty_without_warning(self):
		self.assertEqual(CartStore({}).items, [])

	def test_not_json(self):
		self.assert_empty('{not json')

	def test_not_a_list(self):
		self.assert_empty(json.dumps({'items': []}))

	def test_bad_entries(self):
		self.assert_empty(json.dumps([{'artwork': {'id': 'x', 'price': '1.00'}, 'quantity': 1}]))
		self.assert_empty(json.dumps([{'artwork': {'id': 1, 'price': 'free'}, 'quantity': 1}]))
		self.assert_empty(json.dumps([{'artwork': {'id': 1, 'price': '1.00'}, 'quantity': 0}]))
		self.assert_empty(json.dumps([{'artwork': {'id': 1, 'price': '1.00'}, 'quantity': True}]))
		self.assert_empty(json.dumps([None]))

	def test_duplicate_ids(self):
		entry = {'artwork': {'id': 1, 'price': '1.00'}, 'quantity': 1}
		self.assert_empty(json.dumps([entry, entry]))

	def test_degraded_cart_is_usable(self):
		storage = {CART_STORAGE_KEY: 'garbage'}
		with self.assertLogs('cart.store', level='WARNING'):
			cart = CartStore(storage)
		cart.add_to_cart(snapshot(1))
		self.assertEqual(len(CartStore(storage).items), 1)


class LocalStorageTests(SimpleTestCase):
	def setUp(self):
		self.tmp = tempfile.TemporaryDirectory()
		self.addCleanup(self.tmp.cleanup)
		self.path = Path(self.tmp.name) / 'storage.json'

	def test_cart_survives_reopen(self):
		cart = CartStore(LocalStorage(self.path))
		cart.add_to_cart(snapshot(3, '40.00'), quantity=2)

		reopened = CartStore(LocalStorage(self.path))
		self.assertEqual(reopened.get_total_items(), 2)
		self.assertEqual(reopened.get_total_price(), Decimal('80.00'))

	def test_unreadable_file_is_empty(self):
		self.path.write_text('[1, 2', encoding='utf-8')
		with self.assertLogs('cart.storage', level='WARNING'):
			storage = LocalStorage(self.path)
		self.assertEqual(len(storage), 0)

	def test_delete_key(self):
		storage = LocalStorage(self.path)
		storage['auth_token'] = 'abc'
		del storage['auth_token']
		self.assertNotIn('auth_token', LocalStorage(self.path))


@override_settings(ALLOWED_HOSTS=['testserver'])
class CartApiTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.artist = Artist.objects.create(name='Ada Lovelace')
		cls.available = Artwork.objects.create(artist=cls.artist, title='Engine', price=Decimal('100.00'))
		cls.second = Artwork.objects.create(artist=cls.artist, title='Notes', price=Decimal('50.00'))
		cls.sold = Artwork.objects.create(
			artist=cls.artist,
			title='Gone',
			price=Decimal('75.00'),
			availability=Artwork.Availability.SOLD,
		)

	def setUp(self):
		self.client = APIClient()

	def test_empty_cart(self):
		res = self.client.get('/api/cart/')
		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.json(), {'items': [], 'totalItems': 0, 'totalPrice': '0.00', 'isOpen': False})

	def test_add_update_remove(self):
		res = self.client.post('/api/cart/items/', {'artworkId': self.available.id, 'quantity': 2}, format='json')
		self.assertEqual(res.status_code, 201, res.content)
		res = self.client.post('/api/cart/items/', {'artworkId': self.second.id}, format='json')
		self.assertEqual(res.status_code, 201, res.content)
		body = res.json()
		self.assertEqual(body['totalItems'], 3)
		self.assertEqual(body['totalPrice'], '250.00')
		self.assertEqual(body['items'][0]['artwork']['artist'], {'id': self.artist.id, 'name': 'Ada Lovelace'})

		res = self.client.patch(f'/api/cart/items/{self.available.id}/', {'quantity': 1}, format='json')
		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.json()['totalPrice'], '150.00')

		res = self.client.delete(f'/api/cart/items/{self.second.id}/')
		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.json()['totalItems'], 1)

		# persisted in the session
		self.assertEqual(self.client.get('/api/cart/').json()['totalPrice'], '100.00')

	def test_sold_artwork_rejected(self):
		res = self.client.post('/api/cart/items/', {'artworkId': self.sold.id}, format='json')
		self.assertEqual(res.status_code, 400, res.content)
		self.assertIn('artworkId', res.json())
		self.assertEqual(self.client.get('/api/cart/').json()['totalItems'], 0)

	def test_unknown_artwork_rejected(self):
		res = self.client.post('/api/cart/items/', {'artworkId': 99999}, format='json')
		self.assertEqual(res.status_code, 400, res.content)

	def test_zero_quantity_rejected(self):
		self.client.post('/api/cart/items/', {'artworkId': self.available.id}, format='json')
		res = self.client.patch(f'/api/cart/items/{self.available.id}/', {'quantity': 0}, format='json')
		self.assertEqual(res.status_code, 400, res.content)

	def test_toggle_and_clear(self):
		self.client.post('/api/cart/items/', {'artworkId': self.available.id}, format='json')

		res = self.client.post('/api/cart/toggle/')
		self.assertTrue(res.json()['isOpen'])
		self.assertTrue(self.client.get('/api/cart/').json()['isOpen'])

		res = self.client.post('/api/cart/clear/')
		self.assertEqual(res.json()['items'], [])
		self.assertEqual(self.client.get('/api/cart/').json()['totalItems'], 0)
