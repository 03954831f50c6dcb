from django.urls import path

from shipments.api.public.views import PublicTrackShipmentView

app_name = "shipments_api"

urlpatterns = [
    path("track/<str:no_stt>/", PublicTrackShipmentView.as_view(), name="public_track"),
]
