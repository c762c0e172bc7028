"""
Token authentication for the clinic API.

This module defines a subclass of Django REST framework's
``TokenAuthentication`` so the settings can reference a stable import
path.  JWT bearer tokens are handled by SimpleJWT's
``JWTAuthentication``, configured next to this class in settings.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Accepts ``Authorization: Token <key>`` headers."""

    keyword = 'Token'
