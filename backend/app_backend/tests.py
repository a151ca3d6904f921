from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from captains.models import Captain
from rides.models import Ride
from .views import health_check, system_stats, captain_list


class AdminApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.admin = User.objects.create_user(
			username='admin',
			password='admin1234',
			is_staff=True,
			phone_number='9000000099'
		)
		self.passenger = User.objects.create_user(
			username='passenger',
			password='pass1234',
			phone_number='9000000000'
		)
		captain_user = User.objects.create_user(
			username='captain',
			password='captain1234',
			role='captain',
			phone_number='9000000001'
		)
		self.captain = Captain.objects.create(
			user=captain_user,
			ride_class='car',
			vehicle_number='KA-02-2002',
			approval_status='approved'
		)
		Captain.objects.create(
			user=User.objects.create_user(username='newbie', password='x', role='captain', phone_number='9000000002'),
			ride_class='light',
			vehicle_number='KA-02-2003'
		)
		Ride.objects.create(
			rider=self.passenger,
			captain=self.captain,
			passenger_name='Asha',
			pickup_address='MG Road, Bangalore',
			pickup_latitude=Decimal('12.97'),
			pickup_longitude=Decimal('77.60'),
			drop_address='Whitefield, Bangalore',
			drop_latitude=Decimal('12.96'),
			drop_longitude=Decimal('77.75'),
			ride_class='car',
			scheduled_at=timezone.now(),
			estimated_distance_km=Decimal('16.0'),
			estimated_duration_minutes=52,
			estimated_cost=Decimal('320'),
			status='accepted'
		)

	def _get(self, view, user, params=None):
		request = self.factory.get('/api/admin/', params or {})
		force_authenticate(request, user=user)
		return view(request)

	def test_stats(self):
		response = self._get(system_stats, self.admin)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['stats']['users'], 4)
		self.assertEqual(response.data['stats']['captains'], 2)
		self.assertEqual(response.data['stats']['active_rides'], 1)
		self.assertEqual(response.data['recent_rides'][0]['passenger'], 'Asha')

	def test_stats_require_staff(self):
		response = self._get(system_stats, self.passenger)

		self.assertEqual(response.status_code, 403)

	def test_captain_list_filters_by_status(self):
		response = self._get(captain_list, self.admin, {'status': 'pending'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(len(response.data['captains']), 1)
		self.assertEqual(response.data['captains'][0]['vehicle_number'], 'KA-02-2003')
		self.assertFalse(response.data['pagination']['has_next'])

	@patch('app_backend.views.redis.Redis')
	def test_health_check(self, redis_cls):
		response = self._get(health_check, None)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['services']['database'], 'healthy')
		redis_cls.return_value.ping.assert_called_once()
