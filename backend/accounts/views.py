import logging

from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken

from .models import PhoneOTP, User
from .serializers import (
    RegisterSerializer,
    LoginSerializer,
    UserSerializer,
    ProfileSerializer,
    SendOTPSerializer,
    VerifyOTPSerializer,
)
from .tasks import send_otp_sms

logger = logging.getLogger(__name__)


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class RegisterView(APIView):
    """
    Register a new passenger or captain

    POST Body:
    {
        "username": "john_doe",
        "email": "john@example.com",
        "password": "password123",
        "role": "passenger",  // or "captain"
        "phone_number": "9876543210",
        "vehicle_number": "KA 01 AB 1234",  // required for captains
        "ride_class": "light"               // required for captains
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()

            return Response({
                'message': 'User registered successfully',
                'user': UserSerializer(user).data,
                'tokens': _tokens_for(user),
            }, status=status.HTTP_201_CREATED)

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LoginView(APIView):
    """Login with username and password to get JWT tokens"""
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Get the user object from the validated data
        user = serializer.validated_data

        return Response({
            "message": "Login successful",
            "user": UserSerializer(user).data,
            "tokens": _tokens_for(user),
        }, status=status.HTTP_200_OK)


class SendOTPView(APIView):
    """
    Text a one-time login code to a phone number

    POST Body: {"phone_number": "9876543210"}

    Unknown numbers get a new passenger account, verified on first login.
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = SendOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        phone_number = serializer.validated_data['phone_number']

        with transaction.atomic():
            user = User.objects.filter(phone_number=phone_number).order_by('id').first()
            if user is None:
                user = User.objects.create_user(username=phone_number, phone_number=phone_number)
            otp = PhoneOTP.issue(user)

        send_otp_sms.delay(phone_number, otp.code)
        logger.info("OTP issued for %s", phone_number)

        body = {'success': True, 'message': 'OTP sent successfully'}
        if settings.DEBUG:
            body['otp'] = otp.code
        return Response(body, status=status.HTTP_200_OK)


class VerifyOTPView(APIView):
    """
    Exchange a phone number and its OTP for JWT tokens

    POST Body: {"phone_number": "9876543210", "otp": "123456"}
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = VerifyOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        phone_number = serializer.validated_data['phone_number']

        with transaction.atomic():
            otp = (
                PhoneOTP.objects.select_for_update()
                .select_related('user')
                .filter(user__phone_number=phone_number, is_used=False)
                .first()
            )
            if otp is None or not otp.can_attempt():
                return _otp_error('Invalid or expired OTP')

            otp.attempts += 1
            if otp.code != serializer.validated_data['otp']:
                otp.save(update_fields=['attempts'])
                return _otp_error('Incorrect OTP')

            otp.is_used = True
            otp.save(update_fields=['attempts', 'is_used'])
            user = otp.user
            user.is_phone_verified = True
            user.save(update_fields=['is_phone_verified'])

        logger.info("User %s logged in with OTP", phone_number)
        return Response({
            'success': True,
            'message': 'Login successful',
            'user': UserSerializer(user).data,
            'tokens': _tokens_for(user),
        }, status=status.HTTP_200_OK)


class ProfileView(APIView):
    """GET or update (PUT/PATCH) the signed-in user's profile"""
    permission_classes = (IsAuthenticated,)

    def get(self, request):
        return Response({'success': True, 'user': ProfileSerializer(request.user).data})

    def put(self, request):
        serializer = ProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'success': True,
            'message': 'Profile updated successfully',
            'user': serializer.data,
        })

    patch = put


def _otp_error(message):
    return Response({'success': False, 'error': message}, status=status.HTTP_400_BAD_REQUEST)
