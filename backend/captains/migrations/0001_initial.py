import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Captain',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ride_class', models.CharField(choices=[('light', 'Two-wheeler'), ('auto', 'Three-wheeler'), ('car', 'Car')], max_length=10)),
                ('vehicle_number', models.CharField(max_length=20, unique=True)),
                ('vehicle_model', models.CharField(blank=True, max_length=100)),
                ('vehicle_color', models.CharField(blank=True, max_length=30)),
                ('is_available', models.BooleanField(default=True)),
                ('approval_status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('suspended', 'Suspended')], default='pending', max_length=10)),
                ('rating_average', models.DecimalField(decimal_places=1, default=Decimal('4.5'), max_digits=2)),
                ('rating_count', models.PositiveIntegerField(default=0)),
                ('total_rides', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='captain_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'captains',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['ride_class', 'is_available'], name='captain_class_avail_idx')],
            },
        ),
    ]
