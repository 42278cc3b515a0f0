"""
Authentication API views.

Sign-in issues a JWT pair; sign-out blacklists the refresh token. The
session endpoint tells the client who is signed in and with which role so
it can hide admin-only screens from cashiers.
"""

from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from .identity import IdentityService
from .permissions import IsPOSOperator
from .serializers import OperatorSerializer, SignInSerializer, SignOutSerializer


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def sign_in(request):
    """
    Sign in with username and password.

    Request body:
    {
        "username": "cashier",
        "password": "..."
    }

    Response contains the operator, role and the access/refresh tokens.
    """
    serializer = SignInSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    session = IdentityService.sign_in(
        serializer.validated_data["username"], serializer.validated_data["password"]
    )

    data = session.as_dict()
    data["operator"] = OperatorSerializer(session.user).data
    return Response(data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsPOSOperator])
def sign_out(request):
    """Sign out by blacklisting the refresh token."""
    serializer = SignOutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    IdentityService.sign_out(serializer.validated_data["refresh"])
    return Response({"detail": "Signed out."}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def current_session(request):
    """Return the current operator session, or is_authenticated=false."""
    session = IdentityService.get_session(request)
    if session is None:
        return Response({"is_authenticated": False}, status=status.HTTP_200_OK)

    return Response(
        {
            "is_authenticated": True,
            "operator": OperatorSerializer(session.user).data,
            "is_admin": session.user.is_admin(),
        },
        status=status.HTTP_200_OK,
    )
