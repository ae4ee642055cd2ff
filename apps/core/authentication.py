# apps/core/authentication.py
from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError


class CookiesOrHeaderJWTAuthentication(JWTAuthentication):
    """
    JWT authentication for the dispatcher dashboard and the driver app.

    The dashboard keeps its access token in the cookie named by
    SIMPLE_JWT['AUTH_COOKIE']; the driver app sends 'Authorization: Bearer'.
    A bad cookie falls through to the header instead of failing the request.
    """

    def authenticate(self, request):
        cookie_name = settings.SIMPLE_JWT.get('AUTH_COOKIE', 'access_token')
        cookie_token = request.COOKIES.get(cookie_name)
        if cookie_token:
            try:
                validated_token = self.get_validated_token(cookie_token)
            except (InvalidToken, TokenError):
                validated_token = None
            if validated_token is not None:
                return (self.get_user(validated_token), validated_token)

        return super().authenticate(request)
