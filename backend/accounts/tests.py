from datetime import timedelta
from unittest.mock import patch

from django.conf import settings
from django.contrib.admin import site
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from captains.models import Captain
from rides.sms import format_otp
from .admin import UserAdmin
from .models import PhoneOTP, User
from .serializers import RegisterSerializer
from .tasks import send_otp_sms as send_otp_sms_task
from .views import RegisterView, LoginView, SendOTPView, VerifyOTPView, ProfileView


class RegistrationTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _register(self, **data):
		payload = {
			'username': 'asha',
			'password': 'secret123',
			'email': 'asha@example.com',
			'phone_number': '9876543210',
		}
		payload.update(data)
		request = self.factory.post('/api/auth/register/', payload, format='json')
		return RegisterView.as_view()(request)

	def test_register_passenger(self):
		response = self._register()

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['user']['role'], 'passenger')
		self.assertIn('access', response.data['tokens'])
		self.assertFalse(Captain.objects.exists())

	def test_register_captain_creates_pending_profile(self):
		response = self._register(role='captain', vehicle_number='KA 01 AB 1234', ride_class='auto')

		self.assertEqual(response.status_code, 201)
		captain = Captain.objects.get(user__username='asha')
		self.assertEqual(captain.approval_status, 'pending')
		self.assertEqual(captain.ride_class, 'auto')

	def test_captain_needs_vehicle(self):
		response = self._register(role='captain')

		self.assertEqual(response.status_code, 400)
		self.assertIn('vehicle_number', response.data)
		self.assertIn('ride_class', response.data)

	def test_phone_number_format(self):
		response = self._register(phone_number='1234567890')

		self.assertEqual(response.status_code, 400)
		self.assertIn('phone_number', response.data)

	def test_login(self):
		User.objects.create_user(username='asha', password='secret123', phone_number='9876543210')

		request = self.factory.post('/api/auth/login/', {'username': 'asha', 'password': 'secret123'}, format='json')
		response = LoginView.as_view()(request)
		self.assertEqual(response.status_code, 200)
		self.assertIn('refresh', response.data['tokens'])

		request = self.factory.post('/api/auth/login/', {'username': 'asha', 'password': 'wrong'}, format='json')
		response = LoginView.as_view()(request)
		self.assertEqual(response.status_code, 400)

	def test_duplicate_vehicle_number_is_rejected(self):
		self._register(role='captain', vehicle_number='KA-01-1', ride_class='light')

		response = self._register(
			username='ravi', email='ravi@example.com', role='captain', vehicle_number='KA-01-1', ride_class='light'
		)

		self.assertEqual(response.status_code, 400)
		self.assertIn('vehicle_number', response.data)
		self.assertFalse(User.objects.filter(username='ravi').exists())
		self.assertEqual(Captain.objects.count(), 1)

	def test_failed_profile_insert_rolls_back_user(self):
		self._register(role='captain', vehicle_number='KA-01-1', ride_class='light')

		# Two sign-ups passing validation before either has saved its vehicle
		with patch.object(RegisterSerializer, 'validate_vehicle_number', lambda self, value: value):
			response = self._register(
				username='ravi', email='ravi@example.com', role='captain', vehicle_number='KA-01-1', ride_class='light'
			)

		self.assertEqual(response.status_code, 400)
		self.assertIn('vehicle_number', response.data)
		self.assertFalse(User.objects.filter(username='ravi').exists())


@patch('accounts.views.send_otp_sms')
class OTPLoginTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _send(self, phone_number='9876543210'):
		request = self.factory.post('/api/auth/send-otp/', {'phone_number': phone_number}, format='json')
		return SendOTPView.as_view()(request)

	def _verify(self, otp, phone_number='9876543210'):
		request = self.factory.post('/api/auth/verify-otp/', {'phone_number': phone_number, 'otp': otp}, format='json')
		return VerifyOTPView.as_view()(request)

	def test_unknown_number_gets_passenger_account(self, send_sms):
		response = self._send()

		self.assertEqual(response.status_code, 200)
		self.assertNotIn('otp', response.data)
		user = User.objects.get(phone_number='9876543210')
		self.assertEqual(user.role, 'passenger')
		self.assertFalse(user.has_usable_password())
		otp = PhoneOTP.objects.get(user=user)
		self.assertEqual(len(otp.code), 6)
		send_sms.delay.assert_called_once_with('9876543210', otp.code)

	def test_existing_user_is_reused(self, send_sms):
		user = User.objects.create_user(username='asha', password='secret123', phone_number='9876543210')

		self._send()

		self.assertEqual(User.objects.filter(phone_number='9876543210').count(), 1)
		self.assertTrue(PhoneOTP.objects.filter(user=user).exists())

	@override_settings(DEBUG=True)
	def test_code_is_echoed_in_debug(self, send_sms):
		response = self._send()

		self.assertEqual(response.data['otp'], PhoneOTP.objects.get().code)

	def test_invalid_phone_number(self, send_sms):
		response = self._send('12345')

		self.assertEqual(response.status_code, 400)
		send_sms.delay.assert_not_called()

	def test_verify_returns_tokens_once(self, send_sms):
		self._send()
		otp = PhoneOTP.objects.get()

		response = self._verify(otp.code)
		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data['tokens'])
		self.assertTrue(User.objects.get(phone_number='9876543210').is_phone_verified)

		response = self._verify(otp.code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'Invalid or expired OTP')

	def test_wrong_code_uses_up_attempts(self, send_sms):
		self._send()
		otp = PhoneOTP.objects.get()
		wrong = '000000' if otp.code != '000000' else '111111'

		for _ in range(settings.OTP_MAX_ATTEMPTS):
			response = self._verify(wrong)
			self.assertEqual(response.data['error'], 'Incorrect OTP')

		response = self._verify(otp.code)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'Invalid or expired OTP')

	def test_expired_code(self, send_sms):
		self._send()
		otp = PhoneOTP.objects.get()
		PhoneOTP.objects.filter(pk=otp.pk).update(expires_at=timezone.now() - timedelta(seconds=1))

		response = self._verify(otp.code)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'Invalid or expired OTP')

	def test_new_code_retires_previous(self, send_sms):
		self._send()
		first = PhoneOTP.objects.get()
		self._send()

		first.refresh_from_db()
		self.assertTrue(first.is_used)
		self.assertEqual(PhoneOTP.objects.filter(is_used=False).count(), 1)

	@patch('rides.sms.get_sms_service')
	def test_otp_task_sends_sms(self, get_service, send_sms):
		get_service.return_value.send_otp.return_value = (True, 'SM1')

		result = send_otp_sms_task.apply(args=('9876543210', '123456')).get()

		self.assertTrue(result['success'])
		get_service.return_value.send_otp.assert_called_once_with('9876543210', '123456')

	def test_otp_message_text(self, send_sms):
		self.assertIn('123456', format_otp('123456'))
		self.assertIn('10 minutes', format_otp('123456'))


class ProfileTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.user = User.objects.create_user(
			username='asha', password='secret123', email='asha@example.com', phone_number='9876543210'
		)

	def _call(self, method, data=None, user=None):
		request = getattr(self.factory, method)('/api/auth/profile/', data, format='json')
		force_authenticate(request, user=user or self.user)
		return ProfileView.as_view()(request)

	def test_get_profile(self):
		response = self._call('get')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['user']['phone_number'], '9876543210')
		self.assertFalse(response.data['user']['is_phone_verified'])

	def test_update_name_and_email(self):
		response = self._call('put', {'first_name': 'Asha', 'email': 'rao@example.com', 'role': 'captain'})

		self.assertEqual(response.status_code, 200)
		self.user.refresh_from_db()
		self.assertEqual(self.user.first_name, 'Asha')
		self.assertEqual(self.user.email, 'rao@example.com')
		self.assertEqual(self.user.role, 'passenger')

	def test_email_must_be_unique(self):
		User.objects.create_user(username='ravi', email='ravi@example.com', phone_number='9876500000')

		response = self._call('put', {'email': 'ravi@example.com'})

		self.assertEqual(response.status_code, 400)
		self.assertIn('email', response.data)

	def test_requires_login(self):
		request = self.factory.get('/api/auth/profile/')
		response = ProfileView.as_view()(request)

		self.assertEqual(response.status_code, 401)


class UserAdminTests(TestCase):
	def setUp(self):
		self.model_admin = UserAdmin(User, site)
		self.with_profile = User.objects.create_user(username='ravi', role='captain', phone_number='9876500001')
		Captain.objects.create(user=self.with_profile, ride_class='car', vehicle_number='KA-01-9')
		self.without_profile = User.objects.create_user(username='sunil', role='captain', phone_number='9876500002')
		self.passenger = User.objects.create_user(username='asha', phone_number='9876500003')

	def _filtered(self, value):
		admin_user = User.objects.create_superuser(username=f'admin_{value}', password='admin1234', phone_number='9876500000')
		self.client.force_login(admin_user)
		response = self.client.get('/admin/accounts/user/', {'captain_profile': value})
		self.assertEqual(response.status_code, 200)
		return set(response.context['cl'].queryset)

	def test_captain_profile_filter(self):
		self.assertEqual(self._filtered('yes'), {self.with_profile})
		self.assertEqual(self._filtered('no'), {self.without_profile})

	def test_vehicle_column(self):
		self.assertEqual(self.model_admin.vehicle(self.with_profile), 'KA-01-9')
		self.assertEqual(self.model_admin.vehicle(self.passenger), '-')
