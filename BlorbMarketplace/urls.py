"""
Main URL configuration for BlorbMarketplace project.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('sellers/', include(('apps.sellers.urls', 'sellers'), namespace='sellers')),
]
