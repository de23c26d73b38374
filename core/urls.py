from django.urls import include, path

urlpatterns = [
    path('blockchain/', include('blockchain.urls')),
    path('trace/', include('provenance.urls')),
]
