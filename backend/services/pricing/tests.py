from datetime import datetime
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase

from .engine import PricingEngine, RATE_CARDS
from .estimator import GeoEstimator, CITY_ANCHORS, MIN_DISTANCE_KM, _string_hash, _truncated_mod
from .surge import FixedWeatherPolicy, RandomWeatherPolicy, calculate_surge, MAX_SURGE

IST = ZoneInfo('Asia/Kolkata')

# Wednesday afternoon: no time-based surge
QUIET_TIME = datetime(2026, 10, 14, 14, 0, tzinfo=IST)
# Saturday morning peak
SATURDAY_PEAK = datetime(2026, 10, 17, 9, 0, tzinfo=IST)


class FixedRandom:
	"""Stands in for random.Random with a constant draw."""

	def __init__(self, value):
		self.value = value

	def random(self):
		return self.value


class SurgeTests(SimpleTestCase):
	def test_no_factors_means_no_surge(self):
		multiplier, reasons = calculate_surge(QUIET_TIME, 'Indiranagar 100ft Road', FixedWeatherPolicy(False))

		self.assertEqual(multiplier, 1.0)
		self.assertEqual(reasons, [])

	def test_factors_multiply(self):
		multiplier, reasons = calculate_surge(SATURDAY_PEAK, 'Indiranagar 100ft Road', FixedWeatherPolicy(False))

		self.assertAlmostEqual(multiplier, 1.5 * 1.2)
		self.assertEqual(reasons, ['peak_hours', 'weekend'])

	def test_night_and_high_demand(self):
		late = datetime(2026, 10, 14, 23, 30, tzinfo=IST)
		multiplier, reasons = calculate_surge(late, 'Koramangala 5th Block', FixedWeatherPolicy(False))

		self.assertAlmostEqual(multiplier, 1.3 * 1.3)
		self.assertEqual(reasons, ['night', 'high_demand'])

	def test_surge_is_capped(self):
		multiplier, reasons = calculate_surge(SATURDAY_PEAK, 'MG Road Metro', FixedWeatherPolicy(True))

		self.assertEqual(multiplier, MAX_SURGE)
		self.assertIn('rain', reasons)

	def test_surge_stays_within_bounds(self):
		for hour in range(24):
			for raining in (False, True):
				at = datetime(2026, 10, 17, hour, 15, tzinfo=IST)
				multiplier, _ = calculate_surge(at, 'Airport Road', FixedWeatherPolicy(raining))
				self.assertGreaterEqual(multiplier, 1.0)
				self.assertLessEqual(multiplier, MAX_SURGE)

	def test_utc_time_is_read_in_local_hours(self):
		# 03:30 UTC is 09:00 IST
		at = datetime(2026, 10, 14, 3, 30, tzinfo=ZoneInfo('UTC'))
		_, reasons = calculate_surge(at, 'Jayanagar', FixedWeatherPolicy(False))

		self.assertEqual(reasons, ['peak_hours'])

	def test_random_weather_uses_probability(self):
		self.assertTrue(RandomWeatherPolicy(0.3, FixedRandom(0.1)).is_raining(QUIET_TIME, 'x'))
		self.assertFalse(RandomWeatherPolicy(0.3, FixedRandom(0.5)).is_raining(QUIET_TIME, 'x'))


class PricingEngineTests(SimpleTestCase):
	def setUp(self):
		self.engine = PricingEngine(weather=FixedWeatherPolicy(False))

	def test_quote_itemizes_fare(self):
		fare = self.engine.quote(10.0, 'light', QUIET_TIME, 'Indiranagar')

		self.assertEqual(fare.base_fare, 80)
		self.assertEqual(fare.estimated_minutes, 29)
		self.assertEqual(fare.time_fare, 17)
		self.assertEqual(fare.final_price, 97)
		self.assertEqual(fare.taxes, 5)
		self.assertEqual(fare.platform_fee, 10)
		self.assertEqual(fare.total_payable, 112)
		self.assertFalse(fare.surge_applied)
		self.assertFalse(fare.minimum_fare_applied)

	def test_minimum_fare_holds_without_surge(self):
		for ride_class, card in RATE_CARDS.items():
			fare = self.engine.quote(MIN_DISTANCE_KM, ride_class, QUIET_TIME, 'Indiranagar')
			self.assertGreaterEqual(fare.final_price, card.minimum_fare)
			self.assertTrue(fare.minimum_fare_applied)

	def test_short_trip_uses_minimum_duration(self):
		self.assertEqual(self.engine.estimate_minutes(1.5, 'light'), 10)

	def test_surge_scales_final_price(self):
		fare = self.engine.quote(10.0, 'car', SATURDAY_PEAK, 'Indiranagar')

		# base 150, 32 minutes -> time 38.4, surge 1.8
		self.assertEqual(fare.estimated_minutes, 32)
		self.assertEqual(fare.final_price, 339)
		self.assertEqual(fare.surge_multiplier, 1.8)
		self.assertTrue(fare.surge_applied)
		self.assertEqual(fare.surge_reasons, ('peak_hours', 'weekend'))

	def test_to_dict_is_json_ready(self):
		data = self.engine.quote(4.2, 'auto', QUIET_TIME, 'Indiranagar').to_dict()

		self.assertIsInstance(data['surge_reasons'], list)
		self.assertEqual(data['total_payable'], data['final_price'] + data['taxes'] + data['platform_fee'])

	def test_unknown_ride_class(self):
		with self.assertRaises(ValueError):
			self.engine.quote(5.0, 'helicopter', QUIET_TIME, 'Indiranagar')

	def test_waiting_charge(self):
		self.assertEqual(self.engine.waiting_charge(2, 'car'), 0)
		self.assertEqual(self.engine.waiting_charge(3, 'car'), 0)
		self.assertEqual(self.engine.waiting_charge(8, 'auto'), 7.5)


class GeoEstimatorTests(SimpleTestCase):
	def test_string_hash_wraps_to_int32(self):
		self.assertEqual(_string_hash(''), 0)
		self.assertEqual(_string_hash('a'), 97)
		self.assertEqual(_string_hash('ab'), 97 * 31 + 98)

		h = _string_hash('Electronic City Phase 1, Bangalore' * 20)
		self.assertGreaterEqual(h, -2 ** 31)
		self.assertLess(h, 2 ** 31)

	def test_truncated_mod_keeps_sign(self):
		self.assertEqual(_truncated_mod(7, 3), 1)
		self.assertEqual(_truncated_mod(-7, 3), -1)

	def test_locate_is_deterministic_and_near_anchor(self):
		estimator = GeoEstimator(FixedRandom(0.5))
		lat, lon = estimator.locate('Bandra West, Mumbai')

		self.assertEqual((lat, lon), estimator.locate('Bandra West, Mumbai'))
		self.assertLessEqual(abs(lat - CITY_ANCHORS['mumbai'][0]), 0.15)
		self.assertLessEqual(abs(lon - CITY_ANCHORS['mumbai'][1]), 0.15)

	def test_unknown_city_falls_back_to_default(self):
		lat, lon = GeoEstimator().locate('Somewhere Else')

		self.assertLessEqual(abs(lat - CITY_ANCHORS['bangalore'][0]), 0.15)
		self.assertLessEqual(abs(lon - CITY_ANCHORS['bangalore'][1]), 0.15)

	def test_distance_has_floor(self):
		estimator = GeoEstimator(FixedRandom(0.0))

		self.assertEqual(estimator.estimate_distance('Same Street', 'Same Street'), MIN_DISTANCE_KM)

	def test_distance_never_below_floor(self):
		addresses = ['Koramangala', 'Indiranagar', 'HSR Layout', 'Mumbai Central', 'Delhi Cantt']
		for draw in (0.0, 0.5, 0.999):
			estimator = GeoEstimator(FixedRandom(draw))
			for pickup in addresses:
				for drop in addresses:
					self.assertGreaterEqual(estimator.estimate_distance(pickup, drop), MIN_DISTANCE_KM)

	def test_distance_is_rounded_to_one_decimal(self):
		distance = GeoEstimator(FixedRandom(0.5)).estimate_distance('Delhi Cantt', 'Mumbai Central')

		self.assertEqual(distance, round(distance, 1))
		self.assertGreater(distance, 1000)
