from django.urls import include, path

urlpatterns = [
    path("api/", include("access.urls")),
    path("api/", include("content.urls")),
]
