"""
In-process registry of Pods.

The store is the only mutable state shared between requests. Every operation
holds the store lock, so an attribute merge made by :meth:`PodStore.bind`
is visible to any later :meth:`PodStore.get`.

There is no expiry policy. Pods leave the store on logout, through
:meth:`PodStore.purge` or on :meth:`PodStore.clear`.
"""

import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

from pytz import UTC

from .domain import Attributes, Bag, Parameters, Pod
from .exceptions import UnknownSessionError

import logging

logger = logging.getLogger(__name__)

SESSION_ID_PREFIX = 'GUARD_'


def generate_session_id() -> str:
    """Generate an opaque session ID."""
    return SESSION_ID_PREFIX + uuid.uuid4().hex


class PodStore(object):
    """Thread-safe mapping of session IDs to :class:`.Pod` objects."""

    def __init__(self) -> None:
        self._pods: Dict[str, Pod] = {}
        self._lock = threading.RLock()

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._pods

    def __len__(self) -> int:
        with self._lock:
            return len(self._pods)

    def put(self, session_id: str, pod: Pod) -> None:
        """Store ``pod`` under ``session_id``."""
        with self._lock:
            self._pods[session_id] = pod

    def get(self, session_id: Optional[str]) -> Optional[Pod]:
        """Get the Pod for ``session_id``, or ``None``."""
        if not session_id:
            return None
        with self._lock:
            return self._pods.get(session_id)

    def remove(self, session_id: str) -> Optional[Pod]:
        """Remove and return the Pod for ``session_id``, if there is one."""
        with self._lock:
            pod = self._pods.pop(session_id, None)
        if pod is not None:
            logger.debug('Removed pod %s', session_id)
        return pod

    def create(self, request_scheme: str, host_name: str, request_url: str,
               request_parameters: Optional[Parameters] = None) -> Pod:
        """
        Create and store a new, unauthenticated Pod.

        Parameters
        ----------
        request_scheme : str
        host_name : str
        request_url : str
            Path of the original request, including any query string.
        request_parameters : dict
            Query and form parameters of the original request.

        Returns
        -------
        :class:`.Pod`

        """
        with self._lock:
            session_id = generate_session_id()
            while session_id in self._pods:
                session_id = generate_session_id()
            pod = Pod(session_id, request_scheme, host_name, request_url,
                      request_parameters=request_parameters)
            self._pods[session_id] = pod
        logger.info('Created pod: %s', session_id)
        return pod

    def bind(self, session_id: str, bag: Bag) -> Pod:
        """
        Merge the attributes in ``bag`` into the Pod for ``session_id``.

        Raises
        ------
        :class:`.UnknownSessionError`
            Raised if there is no Pod for ``session_id``.

        """
        with self._lock:
            pod = self._pods.get(session_id)
            if pod is None:
                raise UnknownSessionError(f'No pod for session {session_id}')
            pod.set_bag(bag)
        return pod

    def attributes(self, session_id: str) -> Optional[Attributes]:
        """Get the attributes bound to the Pod for ``session_id``."""
        with self._lock:
            pod = self._pods.get(session_id)
            return None if pod is None else pod.attributes

    def purge(self, max_age: timedelta) -> int:
        """Remove Pods created more than ``max_age`` ago."""
        cutoff = datetime.now(tz=UTC) - max_age
        with self._lock:
            stale = [session_id for session_id, pod in self._pods.items()
                     if pod.created < cutoff]
            for session_id in stale:
                del self._pods[session_id]
        logger.info('Purged %d pods older than %s', len(stale), max_age)
        return len(stale)

    def clear(self) -> None:
        """Drop every Pod."""
        with self._lock:
            self._pods.clear()
