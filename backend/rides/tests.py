import random
import threading
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock, patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from captains.ledger import CaptainAvailabilityLedger
from captains.models import Captain
from realtime.notifications import notify_passenger_event
from services.matching import MatchingPolicy, FirstCandidateSelector
from services.pricing import GeoEstimator, PricingEngine, FixedWeatherPolicy
from services.ride_management import (
	BookingRequest,
	RideLifecycle,
	RideValidationError,
	NoCaptainAvailableError,
	RideNotFoundError,
	InvalidTransitionError,
	AlreadyRatedError,
	InvalidRatingError,
)
from .models import Ride, RoutePoint
from .notifications import RideNotifier
from .sms import SMSService, format_ride_confirmation
from .tasks import send_ride_confirmation_sms
from . import views

PICKUP = 'Koramangala 5th Block, Bangalore'
DROP = 'Indiranagar Metro Station, Bangalore'


def build_lifecycle():
	rng = random.Random(7)
	ledger = CaptainAvailabilityLedger()
	return RideLifecycle(
		geo=GeoEstimator(rng),
		pricing=PricingEngine(weather=FixedWeatherPolicy(False)),
		matching=MatchingPolicy(ledger=ledger, selector=FirstCandidateSelector()),
		ledger=ledger,
		notifier=Mock(spec=RideNotifier),
		rng=rng,
	)


def booking(**overrides):
	fields = dict(
		passenger_name='Asha Rao',
		pickup_address=PICKUP,
		drop_address=DROP,
		ride_class='light',
		scheduled_at=timezone.now() + timedelta(minutes=30),
	)
	fields.update(overrides)
	return BookingRequest(**fields)


class RideTestMixin:
	def setUp(self):
		self.factory = APIRequestFactory()
		self.lifecycle = build_lifecycle()
		self.passenger = User.objects.create_user(
			username='passenger',
			password='pass1234',
			role='passenger',
			phone_number='9000000000'
		)
		self.other_passenger = User.objects.create_user(
			username='other_passenger',
			password='pass1234',
			role='passenger',
			phone_number='9000000009'
		)
		self.captain = self._make_captain('captain_one', 'KA-01-1001')
		self.other_captain = self._make_captain('captain_two', 'KA-01-1002', ride_class='car')

	def _make_captain(self, username, vehicle_number, ride_class='light'):
		user = User.objects.create_user(
			username=username,
			password='captain1234',
			role='captain',
			phone_number='9000000001'
		)
		return Captain.objects.create(
			user=user,
			ride_class=ride_class,
			vehicle_number=vehicle_number,
			approval_status='approved',
			is_available=True
		)

	def _book(self, **overrides):
		return self.lifecycle.create(self.passenger, booking(**overrides)).ride

	def _age(self, ride, minutes, **fields):
		Ride.objects.filter(pk=ride.pk).update(
			created_at=timezone.now() - timedelta(minutes=minutes), **fields
		)


class RideBookingTests(RideTestMixin, TestCase):
	def test_booking_assigns_captain_and_prices_ride(self):
		result = self.lifecycle.create(self.passenger, booking())
		ride = result.ride

		self.assertTrue(result.success)
		self.assertEqual(ride.status, 'accepted')
		self.assertIsNotNone(ride.accepted_at)
		self.assertEqual(ride.captain, self.captain)
		self.assertTrue(ride.ride_code.startswith('QR'))
		self.assertGreaterEqual(ride.estimated_distance_km, Decimal('1.5'))
		self.assertEqual(ride.estimated_cost, Decimal(ride.fare_breakdown['final_price']))
		self.assertGreaterEqual(ride.estimated_cost, 25)
		self.assertEqual(ride.passenger_phone, '9000000000')
		self.assertIn(result.extra['eta_minutes'], range(3, 13))

		self.captain.refresh_from_db()
		self.assertFalse(self.captain.is_available)
		self.assertEqual(self.captain.total_rides, 1)

	def test_confirmation_is_sent_after_commit(self):
		with self.captureOnCommitCallbacks(execute=True):
			ride = self._book()

		notifier = self.lifecycle.notifier
		notifier.notify_ride_confirmed.assert_called_once()
		phone, details = notifier.notify_ride_confirmed.call_args[0]
		self.assertEqual(phone, '9000000000')
		self.assertEqual(details['ride_code'], ride.ride_code)
		self.assertEqual(details['vehicle_number'], 'KA-01-1001')
		notifier.notify_ride_event.assert_called_once_with('ride_accepted', ride, 'Your captain is on the way.')

	def test_no_captain_creates_nothing(self):
		self._book()

		with self.assertRaises(NoCaptainAvailableError):
			self._book()

		self.assertEqual(Ride.objects.count(), 1)

	def test_unapproved_captain_is_never_matched(self):
		Captain.objects.filter(pk=self.captain.pk).update(approval_status='suspended')

		with self.assertRaises(NoCaptainAvailableError):
			self._book()

	def test_notification_failure_does_not_undo_booking(self):
		self.lifecycle.notifier.notify_ride_confirmed.side_effect = RuntimeError('sms down')

		with self.captureOnCommitCallbacks(execute=True):
			ride = self._book()

		self.assertEqual(Ride.objects.get(pk=ride.pk).status, 'accepted')

	def test_validation_errors(self):
		cases = [
			({'passenger_name': 'A'}, 'passenger_name'),
			({'pickup_address': 'abc'}, 'pickup_location'),
			({'drop_address': 'x' * 201}, 'drop_location'),
			({'ride_class': 'boat'}, 'ride_class'),
			({'scheduled_at': timezone.now() - timedelta(hours=1)}, 'scheduled_at'),
			({'payment_method': 'barter'}, 'payment_method'),
		]
		for overrides, field in cases:
			with self.subTest(field=field):
				with self.assertRaises(RideValidationError) as ctx:
					self._book(**overrides)
				self.assertIn(field, ctx.exception.errors)

		self.assertEqual(Ride.objects.count(), 0)

	def test_pickup_outside_service_area(self):
		with patch.object(self.lifecycle.geo, 'locate', return_value=(51.5, -0.12)):
			with self.assertRaises(RideValidationError):
				self._book()

		self.assertEqual(Ride.objects.count(), 0)


class RideCancellationTests(RideTestMixin, TestCase):
	def test_free_cancellation_window(self):
		ride = self._book()

		result = self.lifecycle.cancel(ride.ride_code, 'passenger', 'Changed plans', actor=self.passenger)

		self.assertEqual(result.ride.status, 'cancelled')
		self.assertEqual(result.extra['cancellation_fee'], Decimal('0.00'))
		self.assertEqual(result.ride.cancelled_by, 'passenger')
		self.assertEqual(result.ride.cancellation_reason, 'Changed plans')
		self.captain.refresh_from_db()
		self.assertTrue(self.captain.is_available)
		self.assertEqual(self.captain.total_rides, 1)

	def test_fee_is_capped_after_free_window(self):
		ride = self._book()
		self._age(ride, 3, estimated_cost=Decimal('1000'))

		result = self.lifecycle.cancel(ride.ride_code, 'passenger', actor=self.passenger)

		self.assertEqual(result.ride.cancellation_fee, Decimal('50.00'))

	def test_fee_is_share_of_estimate(self):
		ride = self._book()
		self._age(ride, 3, estimated_cost=Decimal('200'))

		result = self.lifecycle.cancel(ride.ride_code, 'captain', 'Vehicle issue', actor=self.captain.user)

		self.assertEqual(result.ride.cancellation_fee, Decimal('20.00'))
		self.assertEqual(result.ride.cancelled_by, 'captain')

	def test_never_assigned_ride_is_free(self):
		ride = self._book()
		self._age(ride, 30, captain=None, accepted_at=None, status='searching')

		result = self.lifecycle.cancel(ride.ride_code, 'system')

		self.assertEqual(result.ride.cancellation_fee, Decimal('0.00'))
		self.assertFalse(result.extra['was_assigned'])

	@override_settings(RIDE_BOOKING={'FREE_CANCELLATION_SECONDS': 600})
	def test_free_window_is_configurable(self):
		ride = self._book()
		self._age(ride, 5)

		result = self.lifecycle.cancel(ride.ride_code, 'passenger', actor=self.passenger)

		self.assertEqual(result.ride.cancellation_fee, Decimal('0.00'))

	def test_cancelling_terminal_ride_changes_nothing(self):
		ride = self._book()
		first = self.lifecycle.cancel(ride.ride_code, 'passenger', 'first', actor=self.passenger).ride

		with self.assertRaises(InvalidTransitionError):
			self.lifecycle.cancel(ride.ride_code, 'captain', 'second', actor=self.captain.user)

		ride.refresh_from_db()
		self.assertEqual(ride.cancelled_by, 'passenger')
		self.assertEqual(ride.cancellation_reason, 'first')
		self.assertEqual(ride.cancelled_at, first.cancelled_at)

	def test_other_passenger_cannot_cancel(self):
		ride = self._book()

		with self.assertRaises(RideNotFoundError):
			self.lifecycle.cancel(ride.ride_code, 'passenger', actor=self.other_passenger)

		ride.refresh_from_db()
		self.assertEqual(ride.status, 'accepted')

	def test_unknown_ride(self):
		with self.assertRaises(RideNotFoundError):
			self.lifecycle.cancel('QR000', 'passenger')


class ConcurrentCancellationTests(RideTestMixin, TransactionTestCase):
	def test_concurrent_cancels_have_one_winner(self):
		ride = self._book()
		barrier = threading.Barrier(2)
		outcomes = []

		def cancel(role, actor):
			barrier.wait()
			try:
				self.lifecycle.cancel(ride.ride_code, role, role, actor=actor)
				outcomes.append('cancelled')
			except InvalidTransitionError:
				outcomes.append('rejected')
			finally:
				connection.close()

		threads = [
			threading.Thread(target=cancel, args=('passenger', self.passenger)),
			threading.Thread(target=cancel, args=('captain', self.captain.user)),
		]
		for t in threads:
			t.start()
		for t in threads:
			t.join()

		self.assertEqual(sorted(outcomes), ['cancelled', 'rejected'])
		ride.refresh_from_db()
		self.assertEqual(ride.status, 'cancelled')
		self.assertEqual(ride.cancellation_reason, ride.cancelled_by)
		self.captain.refresh_from_db()
		self.assertTrue(self.captain.is_available)


class RideTripTests(RideTestMixin, TestCase):
	def test_full_trip(self):
		ride = self._book()

		started = self.lifecycle.start(ride.ride_code, actor=self.captain.user).ride
		self.assertEqual(started.status, 'started')
		self.assertIsNotNone(started.started_at)

		point = self.lifecycle.record_location(ride.ride_code, 12.95, 77.63, speed=22.5, actor=self.captain.user)
		self.assertEqual(point.latitude, Decimal('12.95'))

		completed = self.lifecycle.complete(ride.ride_code, waiting_minutes=8, actor=self.captain.user).ride
		self.assertEqual(completed.status, 'completed')
		self.assertIsNotNone(completed.completed_at)
		self.assertEqual(completed.waiting_charge, Decimal('5'))
		self.assertEqual(completed.actual_cost, ride.estimated_cost + Decimal('5'))

		ride.refresh_from_db()
		self.assertEqual(ride.current_latitude, Decimal('12.950000'))
		self.assertEqual(ride.route.count(), 1)
		self.captain.refresh_from_db()
		self.assertTrue(self.captain.is_available)
		self.passenger.refresh_from_db()
		self.assertEqual(self.passenger.completed_rides, 1)

	def test_complete_with_actuals(self):
		ride = self._book()
		self.lifecycle.start(ride.ride_code)

		completed = self.lifecycle.complete(
			ride.ride_code,
			actual_distance_km=6.4,
			actual_duration_minutes=21,
			actual_cost=Decimal('88.50'),
		).ride

		self.assertEqual(completed.actual_distance_km, Decimal('6.4'))
		self.assertEqual(completed.actual_duration_minutes, 21)
		self.assertEqual(completed.actual_cost, Decimal('88.50'))

	def test_illegal_transitions(self):
		ride = self._book()

		with self.assertRaises(InvalidTransitionError):
			self.lifecycle.complete(ride.ride_code)
		with self.assertRaises(InvalidTransitionError):
			self.lifecycle.record_location(ride.ride_code, 12.9, 77.6)

		self.lifecycle.start(ride.ride_code)
		with self.assertRaises(InvalidTransitionError):
			self.lifecycle.start(ride.ride_code)

		ride.refresh_from_db()
		self.assertEqual(ride.status, 'started')
		self.assertEqual(RoutePoint.objects.count(), 0)

	def test_negative_actuals_rejected(self):
		ride = self._book()
		self.lifecycle.start(ride.ride_code)

		with self.assertRaises(RideValidationError):
			self.lifecycle.complete(ride.ride_code, actual_cost=Decimal('-1'))

		ride.refresh_from_db()
		self.assertEqual(ride.status, 'started')

	def test_other_captain_cannot_start(self):
		ride = self._book()

		with self.assertRaises(RideNotFoundError):
			self.lifecycle.start(ride.ride_code, actor=self.other_captain.user)

	def test_current_captain_ride(self):
		ride = self._book()

		self.assertEqual(self.lifecycle.get_current_captain_ride(self.captain), ride)
		self.assertIsNone(self.lifecycle.get_current_captain_ride(self.other_captain))


class RideRatingTests(RideTestMixin, TestCase):
	def _completed_ride(self):
		ride = self._book()
		self.lifecycle.start(ride.ride_code)
		self.lifecycle.complete(ride.ride_code)
		return ride

	def test_rating_before_completion_fails(self):
		ride = self._book()

		with self.assertRaises(InvalidTransitionError):
			self.lifecycle.rate(ride.ride_code, 'passenger', 5, actor=self.passenger)

	def test_passenger_rating_updates_captain_once(self):
		ride = self._completed_ride()

		self.lifecycle.rate(ride.ride_code, 'passenger', 5, 'Smooth ride', actor=self.passenger)
		with self.assertRaises(AlreadyRatedError):
			self.lifecycle.rate(ride.ride_code, 'passenger', 1, actor=self.passenger)

		ride.refresh_from_db()
		self.assertEqual(ride.passenger_rating, 5)
		self.assertEqual(ride.passenger_feedback, 'Smooth ride')
		self.captain.refresh_from_db()
		self.assertEqual(self.captain.rating_average, Decimal('5.0'))
		self.assertEqual(self.captain.rating_count, 1)

	def test_captain_rating_does_not_touch_captain_stats(self):
		ride = self._completed_ride()

		self.lifecycle.rate(ride.ride_code, 'captain', 3, actor=self.captain.user)

		ride.refresh_from_db()
		self.assertEqual(ride.captain_rating, 3)
		self.assertIsNone(ride.passenger_rating)
		self.captain.refresh_from_db()
		self.assertEqual(self.captain.rating_count, 0)

	def test_invalid_scores(self):
		ride = self._completed_ride()

		for score in (0, 6, True, 4.5):
			with self.subTest(score=score):
				with self.assertRaises(InvalidRatingError):
					self.lifecycle.rate(ride.ride_code, 'passenger', score, actor=self.passenger)

	def test_feedback_length(self):
		ride = self._completed_ride()

		with self.assertRaises(RideValidationError):
			self.lifecycle.rate(ride.ride_code, 'passenger', 4, 'x' * 501, actor=self.passenger)


class RideQueryTests(RideTestMixin, TestCase):
	def _history(self, count):
		rides = []
		for _ in range(count):
			ride = self._book()
			self.lifecycle.cancel(ride.ride_code, 'passenger')
			rides.append(ride)
		return rides

	def test_pagination(self):
		rides = self._history(3)

		first = self.lifecycle.list_rides(self.passenger, page=1, limit=2)
		self.assertEqual(first.total, 3)
		self.assertEqual(first.total_pages, 2)
		self.assertTrue(first.has_next)
		self.assertEqual(first.rides[0], rides[-1])

		second = self.lifecycle.list_rides(self.passenger, page=2, limit=2)
		self.assertEqual(len(second.rides), 1)
		self.assertFalse(second.has_next)

	def test_status_filter(self):
		self._history(2)
		self._book()

		page = self.lifecycle.list_rides(self.passenger, status='accepted')
		self.assertEqual(page.total, 1)
		self.assertEqual(self.lifecycle.list_rides(self.other_passenger).total, 0)

		with self.assertRaises(RideValidationError):
			self.lifecycle.list_rides(self.passenger, status='flying')

	def test_get_ride_is_scoped(self):
		ride = self._book()

		self.assertEqual(self.lifecycle.get_ride(ride.ride_code, 'passenger', self.passenger), ride)
		with self.assertRaises(RideNotFoundError):
			self.lifecycle.get_ride(ride.ride_code, 'passenger', self.other_passenger)


@patch('rides.views.get_ride_lifecycle')
class RideApiTests(RideTestMixin, TestCase):
	def _call(self, view, method, user, data=None, **kwargs):
		request = getattr(self.factory, method)('/api/rides/', data, format='json')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def _book_payload(self, **overrides):
		payload = {
			'passenger_name': 'Asha Rao',
			'pickup_location': PICKUP,
			'drop_location': DROP,
			'ride_type': 'light',
			'scheduled_at': (timezone.now() + timedelta(minutes=15)).isoformat(),
		}
		payload.update(overrides)
		return payload

	def test_book_ride(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle

		response = self._call(views.book_ride, 'post', self.passenger, self._book_payload())

		self.assertEqual(response.status_code, 201)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['ride']['status'], 'accepted')
		self.assertEqual(response.data['ride']['captain']['vehicle_number'], 'KA-01-1001')

	def test_book_ride_without_captains(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		Captain.objects.update(is_available=False)

		response = self._call(views.book_ride, 'post', self.passenger, self._book_payload())

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'no_captain_available')
		self.assertFalse(response.data['success'])

	def test_book_ride_validation(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle

		response = self._call(views.book_ride, 'post', self.passenger, self._book_payload(ride_type='jet'))

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'validation_error')
		self.assertIn('ride_type', response.data['errors'])

	def test_captain_cannot_book(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle

		response = self._call(views.book_ride, 'post', self.captain.user, self._book_payload())

		self.assertEqual(response.status_code, 403)

	def test_fare_estimate(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle

		response = self._call(views.fare_estimate, 'post', self.passenger, {
			'pickup_location': PICKUP,
			'drop_location': DROP,
			'ride_type': 'car',
		})

		self.assertEqual(response.status_code, 200)
		self.assertGreaterEqual(response.data['distance_km'], 1.5)
		self.assertGreaterEqual(response.data['fare']['final_price'], 60)
		self.assertEqual(Ride.objects.count(), 0)

	def test_list_and_detail(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		ride = self._book()

		request = self.factory.get('/api/rides/', {'page': 1, 'limit': 5})
		force_authenticate(request, user=self.passenger)
		response = views.list_rides(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['pagination']['total'], 1)
		self.assertFalse(response.data['pagination']['has_next'])

		response = self._call(views.ride_detail, 'get', self.passenger, ride_code=ride.ride_code)
		self.assertEqual(response.data['ride']['ride_code'], ride.ride_code)
		self.assertEqual(response.data['ride']['route'], [])

		response = self._call(views.ride_detail, 'get', self.other_passenger, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 404)

	def test_bad_page_parameter(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle

		request = self.factory.get('/api/rides/', {'page': 'two'})
		force_authenticate(request, user=self.passenger)
		response = views.list_rides(request)

		self.assertEqual(response.status_code, 400)

	def test_cancel_and_rate(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		ride = self._book()

		response = self._call(views.rate_ride, 'patch', self.passenger, {'rating': 5}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_transition')

		response = self._call(views.cancel_ride, 'patch', self.passenger, {'reason': 'Late'}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'cancelled')
		self.assertEqual(Decimal(response.data['cancellation_fee']), Decimal('0'))

		response = self._call(views.cancel_ride, 'patch', self.passenger, {}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)

	def test_captain_trip_endpoints(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		ride = self._book()
		user = self.captain.user

		response = self._call(views.captain_start_ride, 'post', user, ride_code=ride.ride_code)
		self.assertEqual(response.data['ride']['status'], 'started')

		response = self._call(views.captain_track_ride, 'post', user, {'latitude': 12.95, 'longitude': 77.63}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 200)

		response = self._call(views.captain_track_ride, 'post', user, {'latitude': 120, 'longitude': 77.63}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)

		response = self._call(views.captain_complete_ride, 'post', user, {'actual_cost': '99.00'}, ride_code=ride.ride_code)
		self.assertEqual(response.data['ride']['status'], 'completed')

		response = self._call(views.captain_rate_ride, 'post', user, {'rating': 4}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 200)

		response = self._call(views.rate_ride, 'patch', self.passenger, {'rating': 9}, ride_code=ride.ride_code)
		self.assertEqual(response.data['error'], 'invalid_rating')

	def test_passenger_cannot_use_captain_endpoints(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		ride = self._book()

		response = self._call(views.captain_start_ride, 'post', self.passenger, ride_code=ride.ride_code)

		self.assertEqual(response.status_code, 403)

	def test_rating_must_be_whole_number(self, get_lifecycle):
		get_lifecycle.return_value = self.lifecycle
		ride = self._book()
		self.lifecycle.start(ride.ride_code)
		self.lifecycle.complete(ride.ride_code)

		response = self._call(views.rate_ride, 'patch', self.passenger, {'rating': 4.5}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_rating')

		response = self._call(views.captain_rate_ride, 'post', self.captain.user, {'rating': 'great'}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_rating')

		response = self._call(views.rate_ride, 'patch', self.passenger, {'feedback': 'ok'}, ride_code=ride.ride_code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'validation_error')

		ride.refresh_from_db()
		self.assertIsNone(ride.passenger_rating)
		self.assertIsNone(ride.captain_rating)


class RideNotificationTests(RideTestMixin, TestCase):
	def test_dev_mode_sms_only_logs(self):
		service = SMSService()

		with self.assertLogs('rides.sms', level='INFO'):
			success, _ = service.send_sms('9000000000', 'hello')

		self.assertTrue(success)

	def test_twilio_client_gets_country_prefix(self):
		client = Mock()
		client.messages.create.return_value = Mock(sid='SM123')

		success, sid = SMSService(client=client).send_sms('9000000000', 'hello')

		self.assertTrue(success)
		self.assertEqual(sid, 'SM123')
		self.assertEqual(client.messages.create.call_args.kwargs['to'], '+919000000000')

	def test_confirmation_text(self):
		text = format_ride_confirmation({
			'ride_code': 'QR1AB',
			'pickup': PICKUP,
			'drop': DROP,
			'captain_name': 'Ravi',
			'captain_phone': '9000000001',
			'vehicle_number': 'KA-01-1001',
		})

		self.assertTrue(text.startswith('Ride confirmed! QR1AB'))
		self.assertIn('Vehicle: KA-01-1001', text)

	@patch('rides.sms.get_sms_service')
	def test_confirmation_task(self, get_service):
		get_service.return_value.send_ride_confirmation.return_value = (True, 'SM1')

		result = send_ride_confirmation_sms.apply(args=('9000000000', {'ride_code': 'QR1'})).get()

		self.assertTrue(result['success'])
		get_service.return_value.send_ride_confirmation.assert_called_once_with('9000000000', {'ride_code': 'QR1'})

	@patch('rides.tasks.send_ride_confirmation_sms.delay')
	def test_notifier_enqueues_sms(self, delay):
		RideNotifier().notify_ride_confirmed('9000000000', {'ride_code': 'QR1'})

		delay.assert_called_once_with('9000000000', {'ride_code': 'QR1'})

	@patch('rides.notifications.notify_passenger_event', side_effect=RuntimeError('layer down'))
	def test_notifier_swallows_push_failures(self, _notify):
		ride = self._book()

		with self.assertLogs('rides.notifications', level='ERROR'):
			RideNotifier().notify_ride_event('ride_started', ride, 'Started')

	def test_passenger_event_reaches_group(self):
		ride = self._book()
		layer = get_channel_layer()
		channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(f'user_{self.passenger.id}', channel)

		self.assertTrue(notify_passenger_event('ride_started', ride, 'Your ride has started.'))

		message = async_to_sync(layer.receive)(channel)
		self.assertEqual(message['type'], 'ride_started')
		self.assertEqual(message['ride_code'], ride.ride_code)
		self.assertEqual(message['message'], 'Your ride has started.')
