"""Accounts app tests."""

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient


class RegistrationTests(TestCase):
	def setUp(self):
		self.client = APIClient()

	def test_register_and_login(self):
		res = self.client.post(
			'/api/accounts/register/',
			{'username': 'ada.l', 'email': 'Ada@Example.com', 'password': 'analytical1'},
			format='json',
		)
		self.assertEqual(res.status_code, 201, res.content)
		user = get_user_model().objects.get(username='ada.l')
		self.assertEqual(user.email, 'ada@example.com')
		self.assertEqual(user.role, 'customer')
		self.assertTrue(user.check_password('analytical1'))

		res = self.client.post('/api/accounts/login/', {'username': 'ada.l', 'password': 'analytical1'}, format='json')
		self.assertEqual(res.status_code, 200, res.content)
		access = res.json()['access']

		self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
		res = self.client.get('/api/accounts/profile/me/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.json()['username'], 'ada.l')
		self.assertFalse(res.json()['is_gallery_admin'])

	def test_admin_role_cannot_be_self_assigned(self):
		res = self.client.post(
			'/api/accounts/register/',
			{'username': 'mallory', 'email': 'm@example.com', 'password': 'password99', 'role': 'admin'},
			format='json',
		)
		self.assertEqual(res.status_code, 400)
		self.assertIn('role', res.json())

	def test_duplicate_email_rejected(self):
		get_user_model().objects.create_user(username='first', email='dup@example.com', password='12345678')
		res = self.client.post(
			'/api/accounts/register/',
			{'username': 'second', 'email': 'DUP@example.com', 'password': 'password99'},
			format='json',
		)
		self.assertEqual(res.status_code, 400)
		self.assertIn('email', res.json())

	def test_profile_update_keeps_role(self):
		user = get_user_model().objects.create_user(username='artist1', email='a1@example.com', password='12345678', role='artist')
		self.client.force_authenticate(user)
		res = self.client.patch('/api/accounts/profile/me/', {'first_name': 'Frida', 'role': 'admin'}, format='json')
		self.assertEqual(res.status_code, 200)
		user.refresh_from_db()
		self.assertEqual(user.first_name, 'Frida')
		self.assertEqual(user.role, 'artist')

	def test_profile_requires_auth(self):
		self.assertEqual(self.client.get('/api/accounts/profile/me/').status_code, 401)

	def test_staff_is_gallery_admin(self):
		user = get_user_model()(username='staff', is_staff=True)
		self.assertTrue(user.is_gallery_admin)
