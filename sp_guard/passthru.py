"""Decides which requests bypass the guard."""

from typing import Pattern, Sequence

from flask import Request

from .extensions import GuardExtension

import logging

logger = logging.getLogger(__name__)

SESSION_VERIFIER_PATH = 'guard.sessionVerifier'
ATTRIBUTE_CONSUMER_PATH = 'guard.guanxiGuardACS'
PODDER_PATH = 'guard.guanxiGuardPodder'


class PassthroughPolicy(object):
    """
    Lets through calls to the guard's own endpoints, and anything else the
    operator or the extension wants left alone.

    Parameters
    ----------
    passthru : sequence
        Compiled pass-through regexes. Each is searched for in the request
        path.
    extension : :class:`.GuardExtension`

    """

    def __init__(self, passthru: Sequence[Pattern],
                 extension: GuardExtension) -> None:
        self.passthru = passthru
        self.extension = extension

    def admits(self, request: Request) -> bool:
        """Whether ``request`` should skip the guard."""
        path = request.path
        return (path.endswith(SESSION_VERIFIER_PATH)
                or path.endswith(ATTRIBUTE_CONSUMER_PATH)
                or path.endswith(self.extension.resolve_logout_path(request))
                or path.endswith(PODDER_PATH)
                or self.custom_passthru(path)
                or self.extension.check_skip_filter(request))

    def custom_passthru(self, path: str) -> bool:
        """Whether ``path`` matches one of the configured regexes."""
        for pattern in self.passthru:
            if pattern.search(path):
                logger.debug('%s matches pass-through %s', path,
                             pattern.pattern)
                return True
        return False
