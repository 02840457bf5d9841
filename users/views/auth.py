# users/views/auth.py

from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from permissions.roles import IsAdmin
from users.serializers import (
    CreateUserSerializer,
    LoginResponseSerializer,
    LoginSerializer,
    UserSerializer,
)


class LoginAnonThrottle(AnonRateThrottle):
    rate = "10/min"


class CreateUserView(APIView):
    """
    Staff accounts are created by an admin; there is no self-registration.
    """

    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = CreateUserSerializer

    @extend_schema(
        tags=["auth"],
        request=CreateUserSerializer,
        responses={201: UserSerializer},
        description="Create a staff user with a role (admin only)",
    )
    def post(self, request):
        serializer = CreateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response(
            UserSerializer(user, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [LoginAnonThrottle]
    serializer_class = LoginSerializer

    @extend_schema(
        tags=["auth"],
        request=LoginSerializer,
        responses={200: LoginResponseSerializer},
        description="Authenticate with email and password; returns a JWT pair",
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )

        if not user:
            return Response(
                {"detail": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user_id": user.id,
                "email": user.email,
                "role": user.role,
            }
        )
