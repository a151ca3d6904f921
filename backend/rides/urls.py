from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Passenger APIs
    path('', views.list_rides, name='list-rides'),
    path('book/', views.book_ride, name='book-ride'),
    path('fare-estimate/', views.fare_estimate, name='fare-estimate'),

    # Captain ride actions
    path('captain/<str:ride_code>/start/', views.captain_start_ride, name='captain-start-ride'),
    path('captain/<str:ride_code>/track/', views.captain_track_ride, name='captain-track-ride'),
    path('captain/<str:ride_code>/complete/', views.captain_complete_ride, name='captain-complete-ride'),
    path('captain/<str:ride_code>/cancel/', views.captain_cancel_ride, name='captain-cancel-ride'),
    path('captain/<str:ride_code>/rate/', views.captain_rate_ride, name='captain-rate-ride'),

    path('<str:ride_code>/', views.ride_detail, name='ride-detail'),
    path('<str:ride_code>/cancel/', views.cancel_ride, name='cancel-ride'),
    path('<str:ride_code>/rate/', views.rate_ride, name='rate-ride'),
]
