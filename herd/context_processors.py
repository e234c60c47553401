from .models import FarmSettings, Membership, Notification


def farm_context(request):
    """Values every page's base template needs."""
    organization = getattr(request, 'organization', None)
    user = getattr(request, 'user', None)
    if organization is None or user is None or not user.is_authenticated:
        return {}
    return {
        'organization': organization,
        'farm_settings': FarmSettings.for_organization(organization),
        'organizations': [m.organization for m in Membership.objects.filter(user=user).select_related('organization')],
        'unread_notifications': Notification.objects.filter(user=user, is_read=False).count(),
    }
