from rest_framework import serializers
from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from .models import User
from captains.models import Captain, RIDE_CLASS_CHOICES

PHONE_PATTERN = r'^[6-9]\d{9}$'


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "phone_number",
            "completed_rides",
        ]
        read_only_fields = ["id", "completed_rides"]


class ProfileSerializer(serializers.ModelSerializer):
    """The signed-in user's own profile; only name and email are editable."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "email",
            "role",
            "phone_number",
            "is_phone_verified",
            "completed_rides",
        ]
        read_only_fields = [
            "id", "username", "role", "phone_number", "is_phone_verified", "completed_rides",
        ]

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("Email already exists")
        return value


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class SendOTPSerializer(serializers.Serializer):
    phone_number = serializers.RegexField(
        PHONE_PATTERN,
        error_messages={'invalid': 'Please provide a valid phone number'},
    )


class VerifyOTPSerializer(serializers.Serializer):
    phone_number = serializers.RegexField(
        PHONE_PATTERN,
        error_messages={'invalid': 'Please provide a valid phone number'},
    )
    otp = serializers.RegexField(
        r'^\d{6}$',
        error_messages={'invalid': 'OTP must be 6 digits'},
    )


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    phone_number = serializers.RegexField(
        PHONE_PATTERN,
        error_messages={'invalid': 'Please provide a valid phone number'},
    )
    vehicle_number = serializers.CharField(required=False)
    vehicle_model = serializers.CharField(required=False, allow_blank=True)
    ride_class = serializers.ChoiceField(choices=RIDE_CLASS_CHOICES, required=False)

    class Meta:
        model = User
        fields = [
            'username', 'password', 'email', 'role', 'phone_number',
            'vehicle_number', 'vehicle_model', 'ride_class',
        ]

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def validate_vehicle_number(self, value):
        if Captain.objects.filter(vehicle_number=value).exists():
            raise serializers.ValidationError("Vehicle number already registered")
        return value

    def validate(self, data):
        # Captains must register a vehicle and the class it serves
        if data.get('role') == 'captain':
            missing = {
                field: f'{field.replace("_", " ").capitalize()} is required for captains'
                for field in ('vehicle_number', 'ride_class')
                if not data.get(field)
            }
            if missing:
                raise serializers.ValidationError(missing)
        return data

    @transaction.atomic
    def create(self, validated_data):
        vehicle_number = validated_data.pop('vehicle_number', None)
        vehicle_model = validated_data.pop('vehicle_model', '')
        ride_class = validated_data.pop('ride_class', None)

        user = User.objects.create_user(
            username=validated_data['username'],
            email=validated_data.get('email', ''),
            password=validated_data['password'],
            role=validated_data.get('role', 'passenger'),
            phone_number=validated_data['phone_number']
        )

        # New captains start unapproved until an admin reviews them
        if user.role == 'captain':
            try:
                Captain.objects.create(
                    user=user,
                    ride_class=ride_class,
                    vehicle_number=vehicle_number,
                    vehicle_model=vehicle_model,
                )
            except IntegrityError:
                raise serializers.ValidationError({"vehicle_number": ["Vehicle number already registered"]})

        return user
