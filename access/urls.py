# access/urls.py
from django.urls import path

from .views import AccessTokenIssueView, ContentAccessView

urlpatterns = [
    path("access",        ContentAccessView.as_view(),   name="content-access-noslash"),
    path("access/",       ContentAccessView.as_view(),   name="content-access"),
    path("access/token",  AccessTokenIssueView.as_view(), name="access-token-noslash"),
    path("access/token/", AccessTokenIssueView.as_view(), name="access-token"),
]
