"""Serializers for the accounts app."""

import re
from django.contrib.auth import get_user_model
from rest_framework import serializers


User = get_user_model()


class RegisterSerializer(serializers.ModelSerializer):
    """Create a new shopper or artist account.

    The admin role cannot be self-assigned; staff accounts are created
    through the Django admin.
    """

    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(
        choices=[User.ROLE_CUSTOMER, User.ROLE_ARTIST],
        default=User.ROLE_CUSTOMER,
    )

    class Meta:
        model = User
        fields = ('username', 'password', 'email', 'role')

    def validate_username(self, value):
        if not re.match(r'^[a-zA-Z0-9._]+$', value):
            raise serializers.ValidationError("Username may only contain letters, digits, dots and underscores.")
        if len(value) < 4:
            raise serializers.ValidationError("Username must be at least 4 characters long.")
        return value

    def validate_email(self, value):
        value = value.lower().strip()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class UserProfileSerializer(serializers.ModelSerializer):
    """Profile view of the authenticated user."""

    is_gallery_admin = serializers.ReadOnlyField()

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'role', 'is_gallery_admin')
        read_only_fields = ('username', 'role')
