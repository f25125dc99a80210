"""
Application-specific hooks into the guard.

A :class:`GuardExtension` is handed to :class:`sp_guard.Guard` and is asked
for the logout path, for the guard ID to present on a request, whether a
request should skip the guard, and is told when a request is let through
with a bound Pod. Override the methods you need:

.. code-block:: python

   class StaticAssets(GuardExtension):
       def check_skip_filter(self, request):
           return request.path.startswith('/static/')

   Guard(app, extension=StaticAssets())

"""

from urllib.parse import urlsplit

from flask import Request

from .domain import Pod

import logging

logger = logging.getLogger(__name__)

LOGOUT_PATH = 'guard.guanxiGuardlogout'
GUARD_DOMAIN_PLACEHOLDER = 'DYNAMIC_GUARD_DOMAIN'


def server_name(request: Request) -> str:
    """Host name of the request, without any port."""
    return urlsplit(request.host_url).hostname or ''


class GuardExtension(object):
    """Default behaviour: a single guard identity, no extra pass-through."""

    def resolve_logout_path(self, request: Request) -> str:
        """Path suffix of the logout endpoint."""
        return LOGOUT_PATH

    def rewrite_guard_id(self, guard_id: str, request: Request) -> str:
        """Guard ID to present to the Engine for ``request``."""
        return guard_id

    def rewrite_cookie_domain(self, domain: str, request: Request) -> str:
        """Domain to set the guard cookie on for ``request``."""
        return domain

    def check_skip_filter(self, request: Request) -> bool:
        """Return ``True`` to let ``request`` through untouched."""
        return False

    def pre_success_hook(self, request: Request, pod: Pod) -> None:
        """Called before an authenticated request continues."""


class DynamicDomainExtension(GuardExtension):
    """
    Multitenancy support: one deployed guard, one identity per virtual host.

    Use the placeholder in the guard ID, e.g.
    ``https://DYNAMIC_GUARD_DOMAIN/sp``, and in the cookie domain, e.g.
    ``.DYNAMIC_GUARD_DOMAIN``. The placeholder is replaced by the host name
    of each request.
    """

    def __init__(self, placeholder: str = GUARD_DOMAIN_PLACEHOLDER) -> None:
        self.placeholder = placeholder

    def rewrite_guard_id(self, guard_id: str, request: Request) -> str:
        rewritten = guard_id.replace(self.placeholder, server_name(request))
        logger.debug('Guard ID for this request is %s', rewritten)
        return rewritten

    def rewrite_cookie_domain(self, domain: str, request: Request) -> str:
        return domain.replace(self.placeholder, server_name(request))


def get_extension(name: str) -> GuardExtension:
    """Get an extension by its configured name."""
    if name == 'dynamic':
        return DynamicDomainExtension()
    return GuardExtension()
