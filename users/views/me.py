from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import UserSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    @extend_schema(
        tags=["auth"],
        responses={200: UserSerializer},
        description="Current authenticated user profile with role capabilities",
    )
    def get(self, request):
        return Response(UserSerializer(request.user, context={"request": request}).data)
