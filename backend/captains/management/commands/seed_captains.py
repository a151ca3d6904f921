import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from captains.models import Captain

logger = logging.getLogger(__name__)
User = get_user_model()

SAMPLE_CAPTAINS = [
    {
        "first_name": "Rajesh", "last_name": "Kumar", "phone_number": "9876543210",
        "ride_class": "light", "vehicle_number": "KA 01 AB 1234",
        "vehicle_model": "Honda Activa", "vehicle_color": "Red",
        "rating_average": "4.8", "rating_count": 125,
    },
    {
        "first_name": "Amit", "last_name": "Singh", "phone_number": "8765432109",
        "ride_class": "light", "vehicle_number": "KA 05 CD 5678",
        "vehicle_model": "Bajaj Pulsar", "vehicle_color": "Black",
        "rating_average": "4.7", "rating_count": 98,
    },
    {
        "first_name": "Priya", "last_name": "Sharma", "phone_number": "7654321098",
        "ride_class": "car", "vehicle_number": "KA 02 EF 9012",
        "vehicle_model": "Maruti Swift", "vehicle_color": "White",
        "rating_average": "4.9", "rating_count": 234,
    },
    {
        "first_name": "Mohammed", "last_name": "Ali", "phone_number": "6543210987",
        "ride_class": "auto", "vehicle_number": "KA 03 GH 3456",
        "vehicle_model": "Bajaj Auto", "vehicle_color": "Yellow",
        "rating_average": "4.6", "rating_count": 167,
    },
    {
        "first_name": "Suresh", "last_name": "Reddy", "phone_number": "9432109876",
        "ride_class": "car", "vehicle_number": "KA 04 IJ 7890",
        "vehicle_model": "Hyundai i20", "vehicle_color": "Blue",
        "rating_average": "4.5", "rating_count": 89,
    },
]


class Command(BaseCommand):
    help = "Create approved, available sample captains for local testing."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="captain123",
            help="Password for the seeded captain accounts (default: captain123).",
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete existing seeded captains before creating them again.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        usernames = [self._username(sample) for sample in SAMPLE_CAPTAINS]

        if options["reset"]:
            deleted, _ = User.objects.filter(username__in=usernames).delete()
            self.stdout.write(self.style.WARNING(f"Removed {deleted} existing seeded records."))

        created = 0
        for sample, username in zip(SAMPLE_CAPTAINS, usernames):
            if User.objects.filter(username=username).exists():
                continue

            user = User.objects.create_user(
                username=username,
                password=options["password"],
                first_name=sample["first_name"],
                last_name=sample["last_name"],
                phone_number=sample["phone_number"],
                role="captain",
            )
            Captain.objects.create(
                user=user,
                ride_class=sample["ride_class"],
                vehicle_number=sample["vehicle_number"],
                vehicle_model=sample["vehicle_model"],
                vehicle_color=sample["vehicle_color"],
                rating_average=Decimal(sample["rating_average"]),
                rating_count=sample["rating_count"],
                approval_status="approved",
                is_available=True,
            )
            created += 1

        logger.info("Seeded %s sample captains", created)
        self.stdout.write(self.style.SUCCESS(f"Seeded {created} sample captains."))

    @staticmethod
    def _username(sample):
        return f"{sample['first_name']}.{sample['last_name']}".lower()
