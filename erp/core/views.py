import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import CompanySettings, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer, ProfileSerializer,
    CompanySettingsSerializer, AuditLogSerializer
)
from .filters import AuditLogFilter
from .numbering import peek_document_number
from .permissions import IsAdminRole
from .utils import create_audit_log, paginated_response

User = get_user_model()
logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = 'Invalid username or password.'


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except AuthenticationFailed:
            username = attrs.get(self.username_field, '')
            logger.info(f"Failed login attempt for {username!r}")
            create_audit_log(
                request=self.context.get('request'),
                action='login_failed',
                model_name='User',
                object_id=username or 'unknown',
                object_name=username or None,
            )
            # One message for unknown user, wrong password and disabled account
            raise AuthenticationFailed(LOGIN_FAILED_MESSAGE)

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        # Self-registered accounts always start with the default role
        user = serializer.save(role='sales')
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    user = request.user
    if request.method == 'GET':
        return Response(ProfileSerializer(user).data)

    serializer = ProfileSerializer(user, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def company_settings(request):
    """Company identity, document defaults and numbering sequences"""
    settings_obj = CompanySettings.load()

    if request.method == 'GET':
        return Response(CompanySettingsSerializer(settings_obj).data)

    serializer = CompanySettingsSerializer(settings_obj, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name='CompanySettings',
            object_id=str(settings_obj.pk),
            object_name=settings_obj.company_name or 'Company settings',
            changes={key: str(value) for key, value in serializer.validated_data.items()},
        )
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def next_number(request, kind):
    """Preview the number the next document of a kind will receive"""
    if kind not in CompanySettings.SEQUENCE_FIELDS:
        return Response({'error': f"Unknown document kind: {kind}"}, status=status.HTTP_404_NOT_FOUND)
    return Response({'kind': kind, 'number': peek_document_number(kind)})


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """List audit logs, newest first"""
    filterset = AuditLogFilter(request.query_params, queryset=AuditLog.objects.select_related('user'))
    return paginated_response(request, filterset.qs.order_by('-created_at', '-id'), AuditLogSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_detail(request, pk):
    """Retrieve a single audit log"""
    log = get_object_or_404(AuditLog.objects.select_related('user'), pk=pk)
    return Response(AuditLogSerializer(log).data)
