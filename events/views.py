import logging

from django.db.models import Q
from django.utils import timezone
from rest_framework import viewsets, status, permissions, mixins
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from .admission import (
    CapacityDecision,
    RejectionReason,
    WindowStatus,
    admit,
    check_registration_window,
    evaluate_eligibility,
    seats_left,
)
from .admission.enums import REJECTION_MESSAGES
from .admission.service import RegistrationAdmissionService
from .exceptions import AdmissionNotFoundError, AdmissionSystemError, EventTransitionError
from .models import Event, Registration, UserProfile
from .serializers import (
    EventRegistrationSerializer,
    EventSerializer,
    EventTransitionSerializer,
    RegistrationSerializer,
    UserProfileSerializer,
    UserSerializer,
)
from .utils import applicant_attributes, is_admin, is_staff_member

logger = logging.getLogger(__name__)

REJECTION_STATUS_CODES = {
    RejectionReason.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    RejectionReason.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    RejectionReason.WINDOW_CLOSED: status.HTTP_400_BAD_REQUEST,
    RejectionReason.NOT_YET_OPEN: status.HTTP_400_BAD_REQUEST,
    RejectionReason.INELIGIBLE: status.HTTP_403_FORBIDDEN,
}

# Transitions a coordinator may make on their own event; the rest need an admin.
COORDINATOR_TRANSITIONS = ('pending', 'cancelled', 'draft')


def rejection_response(reason):
    """Render a business rejection code as an error response."""
    code, _, dimension = str(reason).partition(':')
    reason_enum = RejectionReason(code)
    message = REJECTION_MESSAGES[reason_enum].format(dimension=dimension)
    return Response(
        {'error': message, 'reason': str(reason)},
        status=REJECTION_STATUS_CODES[reason_enum]
    )


class IsStaffRole(permissions.BasePermission):
    def has_permission(self, request, view):
        return is_staff_member(request.user)


class IsAdminRole(permissions.BasePermission):
    def has_permission(self, request, view):
        return is_admin(request.user)


class IsCoordinatorOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return is_staff_member(request.user)

    def has_object_permission(self, request, view, obj):
        return is_admin(request.user) or obj.coordinator_id == request.user.id


class RegistrationPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'limit'
    max_page_size = 500


class UserProfileViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         mixins.UpdateModelMixin,
                         viewsets.GenericViewSet):
    serializer_class = UserProfileSerializer
    permission_classes = [IsAuthenticated]
    queryset = UserProfile.objects.select_related('user')

    def get_queryset(self):
        if is_staff_member(self.request.user):
            return UserProfile.objects.select_related('user').order_by('user__username')
        return UserProfile.objects.filter(user=self.request.user)

    def get_permissions(self):
        # Role-specific attributes are mutable by admins only
        if self.action in ['update', 'partial_update']:
            return [IsAdminRole()]
        return super().get_permissions()

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Get current user with profile"""
        return Response(UserSerializer(request.user).data)


class EventViewSet(viewsets.ModelViewSet):
    queryset = Event.objects.all()
    serializer_class = EventSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [AllowAny()]
        if self.action == 'create':
            return [IsStaffRole()]
        if self.action == 'toggle_registration':
            return [IsAdminRole()]
        if self.action in ['update', 'partial_update', 'destroy', 'registrations']:
            return [IsCoordinatorOrAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        if is_staff_member(self.request.user):
            queryset = Event.objects.all()
        else:
            queryset = Event.objects.filter(status__in=Event.PUBLIC_STATUSES)

        search = self.request.query_params.get('search')
        category = self.request.query_params.get('category')
        status_param = self.request.query_params.get('status')
        department = self.request.query_params.get('department')

        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(description__icontains=search)
            )
        if category:
            queryset = queryset.filter(category=category)
        if status_param and status_param != 'all':
            queryset = queryset.filter(status=status_param)
        if department:
            # Unrestricted events are open to every department
            ids = [
                event.pk for event in queryset.only('pk', 'eligible_departments')
                if not event.eligible_departments or department in event.eligible_departments
            ]
            queryset = queryset.filter(pk__in=ids)

        return queryset.select_related('coordinator').order_by('start_date')

    def perform_create(self, serializer):
        serializer.save(coordinator=self.request.user, status='draft')

    def perform_destroy(self, instance):
        """Soft delete: mark as cancelled instead of deleting"""
        if instance.status in ('completed', 'cancelled'):
            raise ValidationError({'error': f"Event is already {instance.status}"})
        instance.status = 'cancelled'
        instance.registration_open = False
        instance.save(update_fields=['status', 'registration_open', 'updated_at'])

    @action(detail=True, methods=['post'])
    def register(self, request, pk=None):
        service = RegistrationAdmissionService()
        try:
            result = service.admit_registration(request.user.pk, pk)
        except AdmissionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AdmissionSystemError:
            logger.exception("Admission failed for user %s on event %s", request.user.pk, pk)
            return Response(
                {'error': 'Registration is temporarily unavailable, please try again'},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        if not result.admitted:
            return rejection_response(result.reason)
        if not result.registration_required:
            return Response(
                {'status': 'registration_not_required', 'message': 'Registration not required for this event'},
                status=status.HTTP_200_OK
            )
        serializer = RegistrationSerializer(result.registration)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel_registration(self, request, pk=None):
        service = RegistrationAdmissionService()
        try:
            registration = service.cancel_registration(request.user.pk, pk)
        except AdmissionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AdmissionSystemError:
            logger.exception("Cancellation failed for user %s on event %s", request.user.pk, pk)
            return Response(
                {'error': 'Cancellation is temporarily unavailable, please try again'},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        if registration is None:
            return Response(
                {'error': 'Not registered for this event'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response({'status': 'registration_cancelled', 'registration': RegistrationSerializer(registration).data})

    @action(detail=True, methods=['get'])
    def eligibility(self, request, pk=None):
        """Preview whether the current user could register right now, without registering."""
        event = self.get_object()
        window = check_registration_window(event.registration_policy, timezone.now())
        result = evaluate_eligibility(applicant_attributes(request.user), event.eligibility_rules)
        already_registered = (
            Registration.objects.filter(event=event, user=request.user)
            .exclude(status='cancelled')
            .exists()
        )
        has_room = (
            window == WindowStatus.NOT_REQUIRED
            or admit(event.current_count, event.max_participants) == CapacityDecision.CONFIRM
        )
        return Response({
            'event': event.pk,
            'window': str(window),
            'eligible': result.eligible,
            'reason': result.reason,
            'already_registered': already_registered,
            'seats_left': seats_left(event.current_count, event.max_participants),
            'can_register': (
                result.eligible
                and not already_registered
                and window in (WindowStatus.OPEN, WindowStatus.NOT_REQUIRED)
                and has_room
            ),
        })

    @action(detail=True, methods=['get'])
    def registrations(self, request, pk=None):
        """Registrations of one event, for its coordinator or an admin"""
        event = self.get_object()
        queryset = event.registrations.select_related('user', 'user__profile', 'event')

        status_param = request.query_params.get('status')
        search = request.query_params.get('search')
        if status_param:
            queryset = queryset.filter(status=status_param)
        if search:
            queryset = queryset.filter(
                Q(user__first_name__icontains=search) |
                Q(user__last_name__icontains=search) |
                Q(user__email__icontains=search) |
                Q(user__profile__roll_number__icontains=search)
            )
        queryset = queryset.order_by('-registered_at')

        paginator = RegistrationPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = EventRegistrationSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """Move an event through draft, approval and completion"""
        event = self.get_object()
        serializer = EventTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target = serializer.validated_data['status']

        if not is_admin(request.user):
            if event.coordinator_id != request.user.id or target not in COORDINATOR_TRANSITIONS:
                return Response(
                    {'error': 'You are not allowed to make this change'},
                    status=status.HTTP_403_FORBIDDEN
                )
        try:
            event.transition_to(target, actor=request.user)
        except EventTransitionError as e:
            return Response({'error': e.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

        logger.info("Event %s moved to %s by user %s", event.pk, target, request.user.pk)
        return Response(EventSerializer(event, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['patch', 'post'])
    def toggle_registration(self, request, pk=None):
        """Open or close registration on an approved or ongoing event (admin only)"""
        event = self.get_object()
        if event.status not in Event.PUBLIC_STATUSES:
            return Response(
                {'error': 'Registration can only be toggled when the event is approved or ongoing'},
                status=status.HTTP_400_BAD_REQUEST
            )
        event.registration_open = not event.registration_open
        event.save(update_fields=['registration_open', 'updated_at'])

        logger.info("Registration on event %s %s by user %s", event.pk,
                    'opened' if event.registration_open else 'closed', request.user.pk)
        return Response({'registration_open': event.registration_open})


class RegistrationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = RegistrationSerializer
    permission_classes = [IsAuthenticated]

    queryset = Registration.objects.all()

    def get_queryset(self):
        queryset = Registration.objects.filter(user=self.request.user).select_related('event', 'user')
        status_param = self.request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param)
        return queryset.order_by('-registered_at')
