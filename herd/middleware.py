from django.shortcuts import redirect

from .models import Membership


class LoginGateMiddleware:
    """Session login gate.

    Redirects anonymous visitors to the login page. Account pages, the
    admin and static/media files stay reachable.
    """

    EXEMPT_URLS = ['/accounts/', '/admin/', '/static/', '/media/']

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Allow exempt URLs through
        if any(request.path.startswith(url) for url in self.EXEMPT_URLS):
            return self.get_response(request)

        if not request.user.is_authenticated:
            return redirect('login')

        return self.get_response(request)


class CurrentOrganizationMiddleware:
    """Attach ``request.organization`` and ``request.membership``.

    The farm chosen in the session wins when the user still belongs to it;
    otherwise the user's first membership is used. Users with no farm are
    sent to the create-farm page.
    """

    EXEMPT_URLS = ['/accounts/', '/admin/', '/static/', '/media/', '/organizations/new/']

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.organization = None
        request.membership = None

        if request.user.is_authenticated:
            memberships = Membership.objects.filter(user=request.user).select_related('organization').order_by('joined_at')
            membership = None
            selected = request.session.get('organization_id')
            if selected:
                membership = memberships.filter(organization_id=selected).first()
            if membership is None:
                membership = memberships.first()
            if membership is not None:
                request.membership = membership
                request.organization = membership.organization
                request.session['organization_id'] = membership.organization_id
            elif not any(request.path.startswith(url) for url in self.EXEMPT_URLS):
                return redirect('create_organization')

        return self.get_response(request)
