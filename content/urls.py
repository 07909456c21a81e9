# content/urls.py
from django.urls import path

from .views_status import VideoStatusView
from .views_uploads import ConfirmUploadView, ProxiedUploadView, UploadUrlView

urlpatterns = [
    path("upload-url",      UploadUrlView.as_view(),     name="upload-url-noslash"),
    path("upload-url/",     UploadUrlView.as_view(),     name="upload-url"),
    path("confirm-upload",  ConfirmUploadView.as_view(), name="confirm-upload-noslash"),
    path("confirm-upload/", ConfirmUploadView.as_view(), name="confirm-upload"),
    path("upload",          ProxiedUploadView.as_view(), name="video-upload-noslash"),
    path("upload/",         ProxiedUploadView.as_view(), name="video-upload"),
    path("status",          VideoStatusView.as_view(),   name="video-status-noslash"),
    path("status/",         VideoStatusView.as_view(),   name="video-status"),
]
