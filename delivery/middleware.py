from .dispatcher import dispatch
from .resolvers import get_resolver

PASSTHROUGH_PREFIXES = ("/api/", "/admin/", "/static/")


class SiteDispatchMiddleware:
    """
    Requests on <name>.<BASE_DOMAIN> (or ?preview=<name> with the query
    resolver) are answered from the site's template bundle; everything else
    continues down the normal URLconf.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(PASSTHROUGH_PREFIXES):
            return self.get_response(request)

        site_id = get_resolver().resolve(request)
        if not site_id:
            return self.get_response(request)

        return dispatch(request, site_id)
