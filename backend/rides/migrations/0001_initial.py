import django.db.models.deletion
import rides.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('captains', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Ride',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ride_code', models.CharField(default=rides.models.generate_ride_code, editable=False, max_length=32, unique=True)),
                ('passenger_name', models.CharField(max_length=50)),
                ('passenger_phone', models.CharField(blank=True, max_length=15)),
                ('pickup_address', models.CharField(max_length=200)),
                ('pickup_latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('pickup_longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('drop_address', models.CharField(max_length=200)),
                ('drop_latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('drop_longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('ride_class', models.CharField(choices=[('light', 'Two-wheeler'), ('auto', 'Three-wheeler'), ('car', 'Car')], max_length=10)),
                ('scheduled_at', models.DateTimeField()),
                ('estimated_distance_km', models.DecimalField(decimal_places=1, max_digits=7)),
                ('actual_distance_km', models.DecimalField(blank=True, decimal_places=1, max_digits=7, null=True)),
                ('estimated_duration_minutes', models.PositiveIntegerField()),
                ('actual_duration_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('fare_breakdown', models.JSONField(default=dict)),
                ('surge_multiplier', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=4)),
                ('estimated_cost', models.DecimalField(decimal_places=2, max_digits=10)),
                ('actual_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('waiting_charge', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('status', models.CharField(choices=[('requested', 'Requested'), ('searching', 'Searching'), ('accepted', 'Accepted'), ('started', 'Started'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='requested', max_length=20)),
                ('payment_method', models.CharField(choices=[('cash', 'Cash'), ('card', 'Card'), ('wallet', 'Wallet'), ('upi', 'UPI')], default='cash', max_length=10)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed'), ('refunded', 'Refunded')], default='pending', max_length=12)),
                ('passenger_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('passenger_feedback', models.TextField(blank=True, default='')),
                ('passenger_rated_at', models.DateTimeField(blank=True, null=True)),
                ('captain_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('captain_feedback', models.TextField(blank=True, default='')),
                ('captain_rated_at', models.DateTimeField(blank=True, null=True)),
                ('current_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('current_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('location_updated_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_by', models.CharField(blank=True, choices=[('passenger', 'Passenger'), ('captain', 'Captain'), ('system', 'System')], max_length=10, null=True)),
                ('cancellation_reason', models.TextField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_fee', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('captain', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='rides', to='captains.captain')),
                ('rider', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rides', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'rides',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['rider', '-created_at'], name='ride_rider_created_idx'),
                    models.Index(fields=['captain', '-created_at'], name='ride_captain_created_idx'),
                    models.Index(fields=['status', '-created_at'], name='ride_status_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RoutePoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('latitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('longitude', models.DecimalField(decimal_places=6, max_digits=9)),
                ('speed', models.FloatField(blank=True, null=True)),
                ('recorded_at', models.DateTimeField()),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='route', to='rides.ride')),
            ],
            options={
                'db_table': 'ride_route_points',
                'ordering': ['recorded_at', 'id'],
            },
        ),
    ]
