# access/serializers.py
from rest_framework import serializers


class ContentAccessSerializer(serializers.Serializer):
    packId = serializers.CharField(required=False, allow_blank=True, max_length=128)
    contentKey = serializers.CharField(required=False, allow_blank=True, max_length=1024)


class TokenIssueSerializer(serializers.Serializer):
    contentKey = serializers.CharField(max_length=1024)
    packId = serializers.CharField(required=False, allow_blank=True, max_length=128)
    buyerId = serializers.CharField(max_length=128)
    buyerUsername = serializers.CharField(max_length=150)
    vendorId = serializers.CharField(max_length=128)
    vendorUsername = serializers.CharField(max_length=150)
    orderId = serializers.CharField(max_length=128)
    ttl = serializers.IntegerField(required=False, min_value=1, max_value=3600)
