from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    path('dashboard/', views.dashboard, name='dashboard'),
    path('summary/', views.summary, name='summary'),
    path('breakdown/', views.breakdown, name='breakdown'),
    path('transactions/recent/', views.recent_transactions, name='recent-transactions'),
]
