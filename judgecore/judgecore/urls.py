from django.contrib import admin
from django.urls import path

# El core no expone HTTP propio; solo el admin para inspeccionar datos.
urlpatterns = [
    path("admin/", admin.site.urls),
]
