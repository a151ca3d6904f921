import threading
import time

from django.test import SimpleTestCase

from common.utils.geo import haversine_km, is_within_service_area
from common.utils.locks import KeyedLock
from common.utils.rounding import round_half_up


class KeyedLockTests(SimpleTestCase):
	def test_same_key_is_exclusive(self):
		locks = KeyedLock()
		inside = []
		overlaps = []

		def worker():
			with locks.hold('QR1'):
				inside.append(1)
				if len(inside) > 1:
					overlaps.append(1)
				time.sleep(0.01)
				inside.pop()

		threads = [threading.Thread(target=worker) for _ in range(8)]
		for t in threads:
			t.start()
		for t in threads:
			t.join()

		self.assertEqual(overlaps, [])
		self.assertEqual(len(locks), 0)

	def test_different_keys_do_not_block(self):
		locks = KeyedLock()
		entered = threading.Event()

		def other():
			with locks.hold('QR2'):
				entered.set()

		with locks.hold('QR1'):
			thread = threading.Thread(target=other)
			thread.start()
			self.assertTrue(entered.wait(timeout=2))
			thread.join()

	def test_entry_released_after_exception(self):
		locks = KeyedLock()

		with self.assertRaises(RuntimeError):
			with locks.hold('QR1'):
				raise RuntimeError('boom')

		self.assertEqual(len(locks), 0)
		with locks.hold('QR1'):
			self.assertEqual(len(locks), 1)


class GeoTests(SimpleTestCase):
	def test_haversine_known_distance(self):
		# Bangalore to Chennai is roughly 290 km in a straight line
		distance = haversine_km(12.9716, 77.5946, 13.0827, 80.2707)
		self.assertAlmostEqual(distance, 290, delta=5)

	def test_haversine_zero(self):
		self.assertEqual(haversine_km(12.9, 77.5, 12.9, 77.5), 0)

	def test_service_area(self):
		self.assertTrue(is_within_service_area((12.9716, 77.5946)))
		self.assertTrue(is_within_service_area((35.0, 97.0)))
		self.assertFalse(is_within_service_area((51.5074, -0.1278)))
		self.assertFalse(is_within_service_area((7.9, 77.0)))


class RoundingTests(SimpleTestCase):
	def test_half_up(self):
		self.assertEqual(round_half_up(62.5), 63)
		self.assertEqual(round_half_up(2.5), 3)
		self.assertEqual(round_half_up(2.4), 2)

	def test_digits(self):
		self.assertEqual(round_half_up(1.25, 1), 1.3)
		self.assertEqual(round_half_up(3.14159, 2), 3.14)
		self.assertIsInstance(round_half_up(4.0), int)
