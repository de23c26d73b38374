from django.urls import path
from . import views

urlpatterns = [
    path('<str:identifier>/', views.trace_identifier, name='trace_identifier'),
]
