"""Binds guard cookies to Pods."""

from typing import NamedTuple, Optional
from urllib.parse import quote

from flask import Request, Response
from werkzeug.http import parse_cookie
from werkzeug.datastructures import MultiDict

from .domain import Pod
from .extensions import GuardExtension
from .store import PodStore

import logging

logger = logging.getLogger(__name__)


def cookie_name(prefix: str, guard_id: str) -> str:
    """Name of the guard cookie; the guard ID is percent-encoded."""
    return prefix + quote(guard_id, safe='')


class CookieBinding(NamedTuple):
    """Outcome of looking up the guard cookie on a request."""

    pod: Optional[Pod] = None
    """The Pod referenced by the cookie, if any."""

    stale: bool = False
    """A guard cookie was sent but references no Pod."""


class CookieBinder(object):
    """Resolves the guard cookie to a Pod, and sets or expires the cookie."""

    def __init__(self, store: PodStore, name: str,
                 extension: GuardExtension,
                 domain: Optional[str] = None) -> None:
        self.store = store
        self.name = name
        self.extension = extension
        self.domain = domain

    def cookie_value(self, request: Request) -> Optional[str]:
        """
        Get the value of the first guard cookie on the request.

        By default, werkzeug keeps one value per cookie name. A browser may
        send several cookies with the same name (one per matching domain), so
        we parse into a :class:`MultiDict` and take the first.
        """
        raw_cookie = request.environ.get('HTTP_COOKIE', None)
        if raw_cookie is None:
            return None
        values = parse_cookie(raw_cookie, cls=MultiDict).getlist(self.name)
        return values[0] if values else None

    def bind(self, request: Request) -> CookieBinding:
        """
        Look up the Pod referenced by the guard cookie.

        If there is one, its request parameters are replaced by those of the
        current request.
        """
        value = self.cookie_value(request)
        if value is None:
            return CookieBinding()
        pod = self.store.get(value)
        if pod is None:
            logger.debug('Found a guard cookie but no pod: %s', value)
            return CookieBinding(stale=True)
        logger.debug('Found a guard cookie with a pod: %s', value)
        pod.request_parameters = request.values.to_dict(flat=False)
        return CookieBinding(pod=pod)

    def _domain(self, request: Request) -> Optional[str]:
        if self.domain is None:
            return None
        return self.extension.rewrite_cookie_domain(self.domain, request)

    def set(self, response: Response, request: Request, session_id: str,
            secure: bool = False) -> None:
        """Set the guard cookie to ``session_id``."""
        params = dict(httponly=True, path='/', domain=self._domain(request))
        if secure:
            params.update({'secure': True, 'samesite': 'lax'})
        response.set_cookie(self.name, session_id, **params)

    def expire(self, response: Response, request: Request) -> None:
        """Tell the client to drop the guard cookie."""
        response.set_cookie(self.name, '', max_age=0, path='/',
                            domain=self._domain(request), httponly=True)
