import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from drf_spectacular.utils import extend_schema
from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import UserLoginSerializer, UserSerializer

logger = logging.getLogger(__name__)


class TokenPairSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class LoginResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    tokens = TokenPairSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def issue_tokens(user):
    """Return a fresh JWT pair for ``user``."""
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: LoginResponseSerializer,
        400: None,
        401: ErrorResponseSerializer,
    },
    description="Exchange e-mail and password for a JWT pair. Admins and investors share this endpoint.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Log in with e-mail and password."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    # Inactive accounts are rejected by the auth backend as well
    user = authenticate(
        request,
        username=serializer.validated_data['email'],
        password=serializer.validated_data['password'],
    )
    if user is None:
        logger.info("Failed login for %s", serializer.validated_data['email'])
        return Response(
            {'error': 'Invalid e-mail or password'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    update_last_login(None, user)
    logger.info("User %s (%s) logged in", user.email, user.role)

    return Response({
        'user': UserSerializer(user).data,
        'tokens': issue_tokens(user),
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Profile of the logged-in account, including the linked investor ID for investors.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    """Return the authenticated account."""
    return Response(UserSerializer(request.user).data)
