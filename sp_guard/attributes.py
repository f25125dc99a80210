"""
Binds attributes delivered by the Engine to Pods.

After the user authenticates, the Engine posts a payload of verified
attributes to the guard's attribute consumer. The payload is decoded into a
:class:`.Bag`, which is merged into a Pod:

- in solicited mode, into the Pod the guard created before redirecting the
  user, named by the bag's session ID;
- in unsolicited mode (the identity provider started the flow), into a new
  Pod built from the bag's target resource URI.

The payload is a JSON object, e.g.

.. code-block:: json

   {"sessionID": "GUARD_...", "attributes": {"eduPersonPrincipalName": "alice"}}

Verifying the payload is up to the Engine.
"""

import json
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .domain import Bag, Pod
from .exceptions import AttributeDecodeError, MalformedTargetURIError
from .store import PodStore

import logging

logger = logging.getLogger(__name__)

ATTRIBUTES_PARAM = 'attributes'
"""Request parameter that holds the payload."""


def decode_bag(payload: Optional[str]) -> Bag:
    """
    Decode an attribute payload.

    Parameters
    ----------
    payload : str
        JSON-encoded bag.

    Returns
    -------
    :class:`.Bag`

    Raises
    ------
    :class:`.AttributeDecodeError`
        Raised if the payload is missing or malformed.

    """
    if not payload:
        raise AttributeDecodeError('No attributes')
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise AttributeDecodeError(f'Payload is not valid JSON: {e}') from e
    if not isinstance(data, dict):
        raise AttributeDecodeError('Payload is not an object')
    session_id = data.get('sessionID')
    if not session_id or not isinstance(session_id, str):
        raise AttributeDecodeError('Payload has no sessionID')
    attributes = data.get('attributes')
    if not isinstance(attributes, dict):
        raise AttributeDecodeError('Payload has no attributes object')
    unsolicited = data.get('unsolicited', False)
    if not isinstance(unsolicited, bool):
        raise AttributeDecodeError('unsolicited is not a boolean')
    target_resource = data.get('targetResource')
    if target_resource is not None and not isinstance(target_resource, str):
        raise AttributeDecodeError('targetResource is not a string')
    if unsolicited and target_resource is None:
        # Older Engines send the target resource in place of a session ID.
        target_resource = session_id
    return Bag(session_id=session_id, attributes=attributes,
               unsolicited=unsolicited, target_resource=target_resource)


def parse_target(target_resource: Optional[str]) -> Tuple[str, str, str]:
    """
    Split a target resource URI into scheme, host and request URL.

    The host keeps an explicit port; the request URL is the path plus any
    query string.

    Raises
    ------
    :class:`.MalformedTargetURIError`

    """
    if not isinstance(target_resource, str) or not target_resource:
        raise MalformedTargetURIError('No target resource')
    try:
        parts = urlsplit(target_resource)
        port = parts.port
    except ValueError as e:
        raise MalformedTargetURIError(
            f'Cannot parse target resource {target_resource}: {e}'
        ) from e
    if not parts.scheme or not parts.hostname:
        raise MalformedTargetURIError(
            f'Target resource is not absolute: {target_resource}'
        )
    host_name = parts.hostname.replace('/', '')
    if port is not None:
        host_name = f'{host_name}:{port}'
    request_url = parts.path or '/'
    if parts.query:
        request_url = f'{request_url}?{parts.query}'
    return parts.scheme, host_name, request_url


class AttributeBinder(object):
    """Merges bags of attributes into Pods held in a :class:`.PodStore`."""

    def __init__(self, store: PodStore) -> None:
        self.store = store

    def consume(self, payload: Optional[str]) -> Tuple[Pod, Bag]:
        """
        Decode ``payload`` and bind its attributes.

        Returns
        -------
        :class:`.Pod`
            The Pod the attributes were bound to.
        :class:`.Bag`
            The bag as bound; in unsolicited mode its session ID is that of
            the new Pod.

        Raises
        ------
        :class:`.AttributeDecodeError`
        :class:`.UnknownSessionError`
        :class:`.MalformedTargetURIError`

        """
        bag = decode_bag(payload)
        if bag.is_unsolicited_mode():
            logger.info('Got unsolicited bag for %s', bag.target_resource)
            bag = self.create_unsolicited(bag)
        logger.info('Processing bag: %s', bag.session_id)
        pod = self.store.bind(bag.session_id, bag)
        return pod, bag

    def create_unsolicited(self, bag: Bag) -> Bag:
        """Create a Pod for an unsolicited bag, and rebind the bag to it."""
        scheme, host_name, request_url = parse_target(bag.target_resource)
        pod = self.store.create(scheme, host_name, request_url)
        return bag._replace(session_id=pod.session_id)
