"""
Serializers for operator authentication.
"""

from rest_framework import serializers

from .models import User


class SignInSerializer(serializers.Serializer):
    """Credentials for signing in."""

    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class SignOutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class OperatorSerializer(serializers.ModelSerializer):
    """Serializer for the signed-in operator."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)
    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "full_name",
            "email",
            "role",
            "role_display",
            "counter_number",
        ]
        read_only_fields = fields
