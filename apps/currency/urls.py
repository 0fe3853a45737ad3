from django.urls import path
from . import views

app_name = 'currency'

urlpatterns = [
    path('rates/latest/', views.latest_rates, name='latest-rates'),
    path('rates/refresh/', views.refresh_rates, name='refresh-rates'),
]
