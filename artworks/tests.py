"""Artworks app tests."""

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from .models import Artist, Artwork, Exhibition


class CatalogApiTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.approved = Artist.objects.create(name='Georgia O\'Keeffe', featured=True)
		cls.pending = Artist.objects.create(name='Newcomer', is_approved=False)
		cls.flower = Artwork.objects.create(
			artist=cls.approved, title='Black Iris', price=Decimal('900.00'), category='painting',
		)
		cls.bones = Artwork.objects.create(
			artist=cls.approved, title='Ram\'s Head', price=Decimal('300.00'),
			category='photography', availability=Artwork.Availability.SOLD,
		)
		cls.hidden = Artwork.objects.create(artist=cls.pending, title='Draft', price=Decimal('10.00'))
		cls.admin = get_user_model().objects.create_user(
			username='curator', email='curator@example.com', password='12345678', is_staff=True,
		)

	def setUp(self):
		self.client = APIClient()

	def titles(self, res):
		self.assertEqual(res.status_code, 200, res.content)
		return sorted(item['title'] for item in res.json()['results'])

	def test_public_list_hides_unapproved_artists(self):
		self.assertEqual(self.titles(self.client.get('/api/artworks/')), ['Black Iris', "Ram's Head"])
		names = [a['name'] for a in self.client.get('/api/artists/').json()['results']]
		self.assertEqual(names, ["Georgia O'Keeffe"])

	def test_admin_sees_everything(self):
		self.client.force_authenticate(self.admin)
		self.assertEqual(len(self.client.get('/api/artworks/').json()['results']), 3)

	def test_filters(self):
		self.assertEqual(self.titles(self.client.get('/api/artworks/', {'availability': 'available'})), ['Black Iris'])
		self.assertEqual(self.titles(self.client.get('/api/artworks/', {'max_price': '500'})), ["Ram's Head"])
		self.assertEqual(self.titles(self.client.get('/api/artworks/', {'category': 'photography'})), ["Ram's Head"])
		self.assertEqual(self.titles(self.client.get('/api/artworks/', {'search': 'iris'})), ['Black Iris'])

	def test_artwork_payload_shape(self):
		res = self.client.get(f'/api/artworks/{self.flower.id}/')
		body = res.json()
		self.assertEqual(body['price'], '900.00')
		self.assertEqual(body['artist'], {'id': self.approved.id, 'name': "Georgia O'Keeffe"})
		self.assertIn('imageUrl', body)

	def test_artist_count(self):
		res = self.client.get(f'/api/artists/{self.approved.id}/')
		self.assertEqual(res.json()['artwork_count'], 2)

	def test_writes_are_admin_only(self):
		payload = {'title': 'New', 'price': '5.00', 'artist_id': self.approved.id}
		self.assertEqual(self.client.post('/api/artworks/', payload, format='json').status_code, 401)

		self.client.force_authenticate(self.admin)
		res = self.client.post('/api/artworks/', payload, format='json')
		self.assertEqual(res.status_code, 201, res.content)

		res = self.client.post('/api/artworks/', dict(payload, price='0'), format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('price', res.json())


class ExhibitionApiTests(TestCase):
	@classmethod
	def setUpTestData(cls):
		cls.opening = timezone.now()
		cls.past = Exhibition.objects.create(
			title='Early Works', description='Archive show.',
			start_date=cls.opening - timedelta(days=90), end_date=cls.opening - timedelta(days=30),
		)
		cls.on_show = Exhibition.objects.create(
			title='Contemporary Visions', subtitle='New voices', description='Current show.',
			start_date=cls.opening, end_date=cls.opening + timedelta(days=60),
			opening_reception='Friday 6pm', current=True,
		)
		cls.admin = get_user_model().objects.create_user(
			username='curator', email='curator@example.com', password='12345678', is_staff=True,
		)

	def setUp(self):
		self.client = APIClient()

	def payload(self, **overrides):
		data = {
			'title': 'Winter Light',
			'description': 'Landscapes.',
			'startDate': (self.opening + timedelta(days=70)).isoformat(),
			'endDate': (self.opening + timedelta(days=120)).isoformat(),
		}
		data.update(overrides)
		return data

	def test_list_and_detail(self):
		res = self.client.get('/api/exhibitions/')
		self.assertEqual(res.status_code, 200)
		titles = [item['title'] for item in res.json()['results']]
		self.assertEqual(sorted(titles), ['Contemporary Visions', 'Early Works'])

		body = self.client.get(f'/api/exhibitions/{self.on_show.id}/').json()
		self.assertEqual(body['subtitle'], 'New voices')
		self.assertEqual(body['openingReception'], 'Friday 6pm')
		self.assertTrue(body['current'])
		self.assertIn('startDate', body)

		self.assertEqual(self.client.get('/api/exhibitions/9999/').status_code, 404)

	def test_current(self):
		res = self.client.get('/api/exhibitions/current/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.json()['id'], self.on_show.id)

		Exhibition.objects.update(current=False)
		res = self.client.get('/api/exhibitions/current/')
		self.assertEqual(res.status_code, 404)
		self.assertEqual(res.json()['detail'], 'No current exhibition found.')

	def test_writes_are_admin_only(self):
		self.assertEqual(self.client.post('/api/exhibitions/', self.payload(), format='json').status_code, 401)
		self.assertEqual(self.client.delete(f'/api/exhibitions/{self.past.id}/').status_code, 401)

		self.client.force_authenticate(self.admin)
		res = self.client.post('/api/exhibitions/', self.payload(), format='json')
		self.assertEqual(res.status_code, 201, res.content)
		self.assertFalse(res.json()['current'])

		res = self.client.patch(f'/api/exhibitions/{self.past.id}/', {'subtitle': 'Revisited'}, format='json')
		self.assertEqual(res.status_code, 200, res.content)
		self.assertEqual(res.json()['subtitle'], 'Revisited')

		self.assertEqual(self.client.delete(f'/api/exhibitions/{self.past.id}/').status_code, 204)
		self.assertFalse(Exhibition.objects.filter(pk=self.past.id).exists())

	def test_only_one_current_exhibition(self):
		self.client.force_authenticate(self.admin)
		res = self.client.post('/api/exhibitions/', self.payload(current=True), format='json')
		self.assertEqual(res.status_code, 201, res.content)

		self.on_show.refresh_from_db()
		self.assertFalse(self.on_show.current)
		self.assertEqual(self.client.get('/api/exhibitions/current/').json()['id'], res.json()['id'])

	def test_end_date_before_start_is_rejected(self):
		self.client.force_authenticate(self.admin)
		payload = self.payload(endDate=(self.opening - timedelta(days=1)).isoformat())
		res = self.client.post('/api/exhibitions/', payload, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('endDate', res.json())

		res = self.client.patch(
			f'/api/exhibitions/{self.on_show.id}/',
			{'endDate': (self.opening - timedelta(days=1)).isoformat()},
			format='json',
		)
		self.assertEqual(res.status_code, 400)

	def test_featured_catalog(self):
		artist = Artist.objects.create(name='Featured Artist', featured=True)
		Artist.objects.create(name='Quiet Artist')
		Artwork.objects.create(artist=artist, title='Spotlight', price=Decimal('40.00'), featured=True)
		Artwork.objects.create(artist=artist, title='Storeroom', price=Decimal('20.00'))

		artworks = self.client.get('/api/artworks/', {'featured': 'true'}).json()['results']
		self.assertEqual([a['title'] for a in artworks], ['Spotlight'])
		artists = self.client.get('/api/artists/', {'featured': 'true'}).json()['results']
		self.assertEqual([a['name'] for a in artists], ['Featured Artist'])
