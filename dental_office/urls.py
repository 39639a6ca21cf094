# dental_office/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('core.urls', namespace='core')),
    path('appointments/', include('appointments.urls', namespace='appointments')),
    path('reports/', include('reports.urls', namespace='reports')),
]
