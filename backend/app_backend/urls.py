from django.contrib import admin
from django.urls import path, include

from .views import health_check, system_stats, captain_list

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # accounts.urls have register, login, refresh endpoints

    # Captain APIs (profile, availability, current ride, history)
    path('api/captain/', include('captains.urls')),

    # Rides endpoints (at /api/rides/)
    path('api/rides/', include('rides.urls')),

    # Admin APIs (stats, captain list)
    path('api/admin/stats/', system_stats, name='admin-stats'),
    path('api/admin/captains/', captain_list, name='admin-captains'),
]
