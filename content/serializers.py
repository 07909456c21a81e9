# content/serializers.py
from django.conf import settings
from rest_framework import serializers


class UploadUrlSerializer(serializers.Serializer):
    packId = serializers.CharField(max_length=128)
    contentType = serializers.CharField(max_length=128)
    originalName = serializers.CharField(max_length=255)
    expiresIn = serializers.IntegerField(required=False, min_value=60, max_value=7 * 24 * 3600)

    def validate_contentType(self, value: str) -> str:
        if not value.startswith("video/"):
            raise serializers.ValidationError(f"unsupported type: {value}")
        return value

    def validate(self, attrs):
        attrs.setdefault("expiresIn", settings.UPLOAD_URL_DEFAULT_EXPIRES)
        return attrs


class ConfirmUploadSerializer(serializers.Serializer):
    packId = serializers.CharField(max_length=128)
    key = serializers.CharField(max_length=1024)
    originalName = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ProxiedUploadSerializer(serializers.Serializer):
    packId = serializers.CharField(max_length=128)
    key = serializers.CharField(max_length=1024, required=False, allow_blank=True)
