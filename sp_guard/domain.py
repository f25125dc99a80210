"""Defines the session concepts used by the guard."""

from typing import Any, Dict, List, NamedTuple, Optional
from datetime import datetime

from pytz import UTC

Attributes = Dict[str, Any]
Parameters = Dict[str, List[str]]


class Bag(NamedTuple):
    """Verified identity attributes delivered once by the Engine."""

    session_id: str
    """
    Session ID of the Pod the attributes belong to.

    In unsolicited mode this is rebound to the ID of the Pod created for the
    bag.
    """

    attributes: Attributes
    """Attribute name to value(s), as asserted by the identity provider."""

    unsolicited: bool = False
    """Set when the identity side initiated the session."""

    target_resource: Optional[str] = None
    """URI of the resource the user is headed to (unsolicited mode only)."""

    def is_unsolicited_mode(self) -> bool:
        """Whether no Pod was created for this bag ahead of time."""
        return self.unsolicited


class Pod(object):
    """
    Server-held session record.

    Binds a session ID to the context of the request that started the
    authentication round trip and, once bound, to the verified identity
    attributes. Pods are owned by a :class:`.PodStore` and referenced
    elsewhere only by :attr:`session_id`.
    """

    def __init__(self, session_id: str, request_scheme: str, host_name: str,
                 request_url: str,
                 request_parameters: Optional[Parameters] = None,
                 created: Optional[datetime] = None) -> None:
        self.session_id = session_id
        self.request_scheme = request_scheme
        self.host_name = host_name
        self.request_url = request_url
        self.request_parameters: Parameters = request_parameters or {}
        self.attributes: Optional[Attributes] = None
        self.bag: Optional[Bag] = None
        self.created = created or datetime.now(tz=UTC)

    @property
    def is_authenticated(self) -> bool:
        """Whether identity attributes have been bound to this Pod."""
        return self.attributes is not None

    @property
    def original_url(self) -> str:
        """Absolute URL of the request that created this Pod."""
        return f'{self.request_scheme}://{self.host_name}{self.request_url}'

    def set_bag(self, bag: Bag) -> None:
        """Merge the attributes in ``bag`` into this Pod."""
        merged = dict(self.attributes or {})
        merged.update(bag.attributes)
        self.attributes = merged
        self.bag = bag

    def __repr__(self) -> str:
        return f'Pod({self.session_id!r}, {self.original_url!r})'
