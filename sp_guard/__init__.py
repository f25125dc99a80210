"""
Service provider guard for federated single sign-on.

The guard intercepts every request to a Flask application. A request from a
user who already holds a Pod of verified attributes (referenced by the guard
cookie) goes through with the attributes attached. Anyone else gets a new Pod
and is sent to the Engine to pick an identity provider and authenticate.
The Engine then delivers the user's attributes to the guard's attribute
consumer, and the user comes back through the podder, which sets the cookie.

Intended for use in a Flask application factory, for example:

.. code-block:: python

   from flask import Flask
   from sp_guard import Guard
   from someapp import routes


   def create_web_app() -> Flask:
      app = Flask('someapp')
      app.config.from_object('sp_guard.config')
      app.config.from_pyfile('config.py')
      Guard(app)    # Protects every route, registers the guard endpoints.
      app.register_blueprint(routes.blueprint)
      return app

Routes can then read ``request.attributes``.
"""

from enum import Enum
from typing import Optional, Tuple
from urllib.parse import urlencode

from flask import Flask, Response, g, jsonify, redirect, request

from . import routes
from .attributes import AttributeBinder
from .config import GuardConfig
from .cookies import CookieBinder, cookie_name
from .domain import Bag, Pod
from .exceptions import RedirectDispatchError
from .extensions import GuardExtension, DynamicDomainExtension, get_extension
from .passthru import PassthroughPolicy
from .store import PodStore

import logging

logger = logging.getLogger(__name__)

GUARD_ID_PARAM = 'guardId'
SESSION_ID_PARAM = 'sessionId'
ENTITY_ID_PARAM = 'entityID'
WAYF_NOT_RESPONDING = 'ID_WAYF_WS_NOT_RESPONDING'


class GuardState(Enum):
    """Where the guard left a request."""

    UNEVALUATED = 'unevaluated'
    PASSTHROUGH = 'passthrough'
    """Continued untouched."""
    BOUND = 'bound'
    """Continued with the attributes of a Pod attached."""
    REDIRECTING = 'redirecting'
    """Sent to the Engine; the request is handled."""


def handle_dispatch_error(error: RedirectDispatchError) -> Tuple[Response, int]:
    """Tell the operator that the Engine could not be reached."""
    response = jsonify(error_id=error.error_id, error_message=error.message)
    return response, 502


class Guard(object):
    """
    Guards every request to a Flask app.

    Parameters
    ----------
    app : :class:`Flask`
    store : :class:`.PodStore`
        Where Pods are kept. A new store is created if not given.
    extension : :class:`.GuardExtension`
        Application hooks. If not given, one is picked by the
        ``GUARD_EXTENSION`` config parameter.

    """

    def __init__(self, app: Optional[Flask] = None,
                 store: Optional[PodStore] = None,
                 extension: Optional[GuardExtension] = None) -> None:
        self.store = store if store is not None else PodStore()
        self._extension = extension
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Validate config, and attach :meth:`.gatekeep` to the Flask app.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if the guard is not fully configured.

        """
        self.app = app
        self.config = GuardConfig.from_mapping(app.config)
        self.extension = self._extension or get_extension(self.config.extension)
        self.cookies = CookieBinder(
            self.store,
            cookie_name(self.config.cookie_prefix, self.config.guard_id),
            self.extension,
            domain=self.config.cookie_domain
        )
        self.policy = PassthroughPolicy(self.config.passthru, self.extension)
        self.binder = AttributeBinder(self.store)

        app.config['sp_guard.Guard'] = self
        app.register_blueprint(routes.blueprint)
        app.register_error_handler(RedirectDispatchError,
                                   handle_dispatch_error)
        app.before_request(self.gatekeep)

        if self.config.debug:
            self.guard_debug()
            logger.debug('GUARD_DEBUG is set, guard logging at DEBUG')
        logger.info('Guard %s using cookie %s', self.config.guard_id,
                    self.cookies.name)

    def gatekeep(self) -> Optional[Response]:
        """
        Let the request through, or send the user to the Engine.

        This is run before each Flask request. A return value other than
        ``None`` is the response; request handling stops there.
        """
        g.guard_state = GuardState.UNEVALUATED
        request.auth = None
        request.attributes = None
        if self.policy.admits(request):
            g.guard_state = GuardState.PASSTHROUGH
            return None

        binding = self.cookies.bind(request)
        pod = binding.pod
        if pod is not None and pod.is_authenticated:
            g.guard_state = GuardState.BOUND
            request.auth = pod
            request.attributes = pod.attributes
            self.extension.pre_success_hook(request, pod)
            return None

        pod = self.create_pod()
        g.guard_state = GuardState.REDIRECTING
        response = self.goto_engine(pod.session_id)
        if binding.stale:
            self.cookies.expire(response, request)
        return response

    def create_pod(self) -> Pod:
        """
        Create a Pod for the current request.

        The parameters are stored in the Pod as they are gone once the user
        comes back from the Engine.
        """
        request_url = request.script_root + request.path
        if request.query_string:
            request_url += '?' + request.query_string.decode('utf-8')
        return self.store.create(
            request.scheme,
            request.host.replace('/', ''),
            request_url,
            request.values.to_dict(flat=False)
        )

    def guard_id(self) -> str:
        """The guard ID to present on the current request."""
        return self.extension.rewrite_guard_id(self.config.guard_id, request)

    def goto_engine(self, session_id: str) -> Response:
        """
        Redirect to the Engine's discovery service.

        Raises
        ------
        :class:`.RedirectDispatchError`
            Raised if the redirect could not be sent.

        """
        params = [(GUARD_ID_PARAM, self.guard_id()),
                  (SESSION_ID_PARAM, session_id)]
        entity_id = (request.values.get(ENTITY_ID_PARAM)
                     or self.config.default_entity_id)
        if entity_id:
            params.append((ENTITY_ID_PARAM, entity_id))
        engine_url = self.config.engine_url
        separator = '&' if '?' in engine_url else '?'
        try:
            return redirect(engine_url + separator + urlencode(params))
        except (OSError, ValueError) as e:
            logger.error('Engine GPS service not responding: %s', e)
            raise RedirectDispatchError(WAYF_NOT_RESPONDING, str(e)) from e

    def deactivate(self, pod: Optional[Pod]) -> None:
        """Drop ``pod``; its owner has to authenticate again."""
        if pod is not None:
            self.store.remove(pod.session_id)

    def shutdown(self) -> None:
        """Drop all Pods."""
        logger.info('Shutting down guard; dropping %d pods', len(self.store))
        self.store.clear()

    def guard_debug(self) -> None:
        """Set the guard loggers to DEBUG."""
        for name in ('', '.attributes', '.cookies', '.extensions',
                     '.passthru', '.routes', '.store'):
            logging.getLogger(__name__ + name).setLevel(logging.DEBUG)


__all__ = ['Guard', 'GuardState', 'GuardExtension', 'DynamicDomainExtension',
           'PodStore', 'Pod', 'Bag']
