from django.urls import path

from fuel_finder import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/places", views.place_search_view, name="place-search"),
    path("api/v1/stations/nearby", views.nearby_stations_view, name="nearby-stations"),
    path("api/v1/stations/by-place", views.place_stations_view, name="place-stations"),
]
