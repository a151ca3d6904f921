from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from rides.models import Ride
from services.matching import MatchingPolicy, FirstCandidateSelector
from services.ride_management import InvalidTransitionError
from .ledger import CaptainAvailabilityLedger
from .models import Captain
from .services import update_availability
from .views import CaptainAvailabilityView, CaptainCurrentRideView


def make_captain(username, ride_class='light', approval_status='approved', is_available=True, **extra):
	user = User.objects.create_user(
		username=username,
		password='captain1234',
		role='captain',
		phone_number='9000000100'
	)
	return Captain.objects.create(
		user=user,
		ride_class=ride_class,
		vehicle_number=f'KA-{username.upper()}',
		approval_status=approval_status,
		is_available=is_available,
		**extra
	)


class CaptainAvailabilityLedgerTests(TestCase):
	def setUp(self):
		self.ledger = CaptainAvailabilityLedger()

	def test_find_candidates_filters_class_approval_and_availability(self):
		match = make_captain('match')
		make_captain('other_class', ride_class='car')
		make_captain('pending', approval_status='pending')
		make_captain('busy', is_available=False)
		make_captain('suspended', approval_status='suspended')

		self.assertEqual(self.ledger.find_candidates('light'), [match])

	def test_find_candidates_respects_limit(self):
		for i in range(4):
			make_captain(f'captain_{i}')

		self.assertEqual(len(self.ledger.find_candidates('light', limit=2)), 2)

	def test_availability_is_independent_of_approval(self):
		captain = make_captain('pending', approval_status='pending')

		self.assertTrue(self.ledger.set_available(captain.pk, False))
		captain.refresh_from_db()
		self.assertFalse(captain.is_available)
		self.assertEqual(captain.approval_status, 'pending')

	def test_set_available_unknown_captain(self):
		self.assertFalse(self.ledger.set_available(999999, True))

	def test_claim_flips_availability_and_counts_ride(self):
		captain = make_captain('claimable')

		self.assertTrue(self.ledger.claim(captain.pk))
		captain.refresh_from_db()
		self.assertFalse(captain.is_available)
		self.assertEqual(captain.total_rides, 1)

	def test_claim_fails_once_taken(self):
		captain = make_captain('claimable')

		self.assertTrue(self.ledger.claim(captain.pk))
		self.assertFalse(self.ledger.claim(captain.pk))
		captain.refresh_from_db()
		self.assertEqual(captain.total_rides, 1)

	def test_claim_refuses_unapproved(self):
		captain = make_captain('pending', approval_status='pending')

		self.assertFalse(self.ledger.claim(captain.pk))

	def test_running_mean(self):
		captain = make_captain('rated')
		self.assertEqual(captain.rating_average, Decimal('4.5'))
		self.assertEqual(captain.rating_count, 0)

		captain = self.ledger.apply_rating(captain.pk, 5)
		self.assertEqual(captain.rating_average, Decimal('5.0'))
		self.assertEqual(captain.rating_count, 1)

		captain = self.ledger.apply_rating(captain.pk, 3)
		self.assertEqual(captain.rating_average, Decimal('4.0'))
		self.assertEqual(captain.rating_count, 2)

	def test_running_mean_rounds_half_up(self):
		captain = make_captain('rated', rating_average=Decimal('4.0'), rating_count=3)

		# (4.0 * 3 + 5) / 4 = 4.25
		captain = self.ledger.apply_rating(captain.pk, 5)
		self.assertEqual(captain.rating_average, Decimal('4.3'))

	def test_apply_rating_unknown_captain(self):
		self.assertIsNone(self.ledger.apply_rating(999999, 4))


class MatchingPolicyTests(TestCase):
	def setUp(self):
		self.ledger = CaptainAvailabilityLedger()
		self.policy = MatchingPolicy(ledger=self.ledger, selector=FirstCandidateSelector())

	def test_reserve_returns_claimed_captain(self):
		captain = make_captain('first')

		reserved = self.policy.reserve_captain('light', 'Koramangala')

		self.assertEqual(reserved, captain)
		self.assertFalse(reserved.is_available)
		self.assertEqual(reserved.total_rides, 1)

	def test_reserve_none_when_pool_empty(self):
		make_captain('car_only', ride_class='car')

		self.assertIsNone(self.policy.reserve_captain('light', 'Koramangala'))
		self.assertIsNone(self.policy.find_captain('light', 'Koramangala'))

	def test_find_does_not_reserve(self):
		captain = make_captain('first')

		self.assertEqual(self.policy.find_captain('light', 'Koramangala'), captain)
		captain.refresh_from_db()
		self.assertTrue(captain.is_available)

	def test_candidate_limit_is_capped(self):
		self.assertEqual(MatchingPolicy(candidate_limit=50).candidate_limit, 10)

	def test_racing_bookings_never_share_a_captain(self):
		first = make_captain('first')
		second = make_captain('second')

		# Both bookings read the pool before either claims
		stale_pool = self.ledger.find_candidates('light')
		other_ledger = CaptainAvailabilityLedger()
		other_policy = MatchingPolicy(ledger=other_ledger, selector=FirstCandidateSelector())

		winner = self.policy.reserve_captain('light', 'Koramangala')
		with patch.object(other_ledger, 'find_candidates', return_value=stale_pool):
			loser = other_policy.reserve_captain('light', 'Indiranagar')

		self.assertEqual(winner, first)
		self.assertEqual(loser, second)

	def test_racing_bookings_for_last_captain(self):
		make_captain('only')

		stale_pool = self.ledger.find_candidates('light')
		other_ledger = CaptainAvailabilityLedger()
		other_policy = MatchingPolicy(ledger=other_ledger, selector=FirstCandidateSelector())

		self.assertIsNotNone(self.policy.reserve_captain('light', 'Koramangala'))
		with patch.object(other_ledger, 'find_candidates', return_value=stale_pool):
			self.assertIsNone(other_policy.reserve_captain('light', 'Indiranagar'))

		self.assertEqual(Captain.objects.get().total_rides, 1)


class CaptainViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.captain = make_captain('ravi', is_available=False)
		self.passenger = User.objects.create_user(
			username='passenger',
			password='pass1234',
			role='passenger',
			phone_number='9000000000'
		)

	def _active_ride(self, status='accepted'):
		return Ride.objects.create(
			rider=self.passenger,
			captain=self.captain,
			passenger_name='Asha',
			pickup_address='Koramangala 5th Block',
			pickup_latitude=Decimal('12.93'),
			pickup_longitude=Decimal('77.62'),
			drop_address='Indiranagar Metro',
			drop_latitude=Decimal('12.97'),
			drop_longitude=Decimal('77.64'),
			ride_class='light',
			scheduled_at=timezone.now(),
			estimated_distance_km=Decimal('5.2'),
			estimated_duration_minutes=15,
			estimated_cost=Decimal('60'),
			status=status,
			accepted_at=timezone.now(),
		)

	def test_toggle_availability(self):
		request = self.factory.put('/api/captain/availability/', {'is_available': True}, format='json')
		force_authenticate(request, user=self.captain.user)
		response = CaptainAvailabilityView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.captain.refresh_from_db()
		self.assertTrue(self.captain.is_available)

	def test_cannot_go_available_during_ride(self):
		self._active_ride(status='started')

		with self.assertRaises(InvalidTransitionError):
			update_availability(self.captain, True)

		request = self.factory.put('/api/captain/availability/', {'is_available': True}, format='json')
		force_authenticate(request, user=self.captain.user)
		response = CaptainAvailabilityView.as_view()(request)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_transition')
		self.captain.refresh_from_db()
		self.assertFalse(self.captain.is_available)

	def test_passenger_is_rejected(self):
		request = self.factory.get('/api/captain/availability/')
		force_authenticate(request, user=self.passenger)
		response = CaptainAvailabilityView.as_view()(request)

		self.assertEqual(response.status_code, 403)

	def test_current_ride(self):
		ride = self._active_ride()

		request = self.factory.get('/api/captain/current-ride/')
		force_authenticate(request, user=self.captain.user)
		response = CaptainCurrentRideView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride_code'], ride.ride_code)

	def test_no_current_ride(self):
		request = self.factory.get('/api/captain/current-ride/')
		force_authenticate(request, user=self.captain.user)
		response = CaptainCurrentRideView.as_view()(request)

		self.assertEqual(response.status_code, 404)


class SeedCaptainsCommandTests(TestCase):
	def test_seeds_matchable_captains_once(self):
		call_command('seed_captains', stdout=StringIO())
		call_command('seed_captains', stdout=StringIO())

		self.assertEqual(Captain.objects.count(), 5)
		self.assertEqual(Captain.objects.filter(approval_status='approved', is_available=True).count(), 5)
		self.assertEqual(CaptainAvailabilityLedger().find_candidates('car')[0].user.role, 'captain')
