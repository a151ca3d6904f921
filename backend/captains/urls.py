from django.urls import path
from .views import (
    CaptainProfileView,
    CaptainAvailabilityView,
    CaptainCurrentRideView,
    CaptainRideHistoryView,
)

urlpatterns = [
    path("profile/", CaptainProfileView.as_view(), name="captain-profile"),
    path("availability/", CaptainAvailabilityView.as_view(), name="captain-availability"),
    path("current-ride/", CaptainCurrentRideView.as_view(), name="captain-current-ride"),
    path("history/", CaptainRideHistoryView.as_view(), name="captain-history"),
]
