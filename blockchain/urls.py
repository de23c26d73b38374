from django.urls import path
from . import views

urlpatterns = [
    path('verify/', views.chain_verification, name='chain_verification'),
    path('history/<str:entity_id>/', views.entity_history, name='entity_history'),
]
