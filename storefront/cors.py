from django.utils.cache import patch_vary_headers
import logging

logger = logging.getLogger(__name__)


def apply_cors_headers(request, response, allowed_origins, allowed_methods):
    """
    Echo the request origin back only when it is on the allow-list.

    Unlisted origins get no CORS headers at all, so the browser's same-origin
    policy blocks the cross-origin read.
    """
    origin = request.META.get('HTTP_ORIGIN', '')

    if origin and origin in allowed_origins:
        response['Access-Control-Allow-Origin'] = origin
        response['Access-Control-Allow-Methods'] = ', '.join(allowed_methods)
        response['Access-Control-Allow-Headers'] = 'Content-Type'
    elif origin:
        logger.debug(f"CORS: origin {origin} not in allow-list")

    patch_vary_headers(response, ('Origin',))
    return response


class AllowListCorsMixin:
    """Adds allow-list CORS headers to every response of a class-based view"""

    cors_allowed_methods = ()

    def get_cors_allowed_origins(self):
        raise NotImplementedError

    def dispatch(self, request, *args, **kwargs):
        response = super().dispatch(request, *args, **kwargs)
        return apply_cors_headers(
            request,
            response,
            self.get_cors_allowed_origins(),
            self.cors_allowed_methods,
        )
