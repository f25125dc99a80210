"""
Guard configuration.

The module-level values are Flask config defaults, read from the process
environment; load them with ``app.config.from_object('sp_guard.config')``.
:meth:`GuardConfig.from_mapping` validates a Flask config once, when the
:class:`sp_guard.Guard` is attached to an app.
"""

import os
import re
from typing import Any, Mapping, NamedTuple, Optional, Pattern, Tuple

from .exceptions import ConfigurationError

GUARD_ID = os.environ.get('GUARD_ID')
"""Entity ID of the guard. May contain the multitenancy placeholder."""

GUARD_COOKIE_PREFIX = os.environ.get('GUARD_COOKIE_PREFIX',
                                     'GUANXI_GUARD_SERVICE_PROVIDER_')
"""Prefix of the guard cookie name. The encoded guard ID is appended."""

GUARD_ENGINE_URL = os.environ.get('GUARD_ENGINE_URL')
"""Discovery service of the Engine that unauthenticated users are sent to."""

GUARD_DEFAULT_ENTITY_ID = os.environ.get('GUARD_DEFAULT_ENTITY_ID', '')
"""Identity provider to use when the request does not name one."""

GUARD_PASSTHRU_URLS = os.environ.get('GUARD_PASSTHRU_URLS', '')
"""Comma-separated regexes. Paths matching any of them skip the guard."""

GUARD_COOKIE_DOMAIN = os.environ.get('GUARD_COOKIE_DOMAIN')
"""Domain of the guard cookie. Host-only if not set."""

GUARD_EXTENSION = os.environ.get('GUARD_EXTENSION', 'default')
"""Extension strategy; ``default`` or ``dynamic`` for multitenancy."""

GUARD_DEBUG = bool(int(os.environ.get('GUARD_DEBUG', '0')))
"""Log guard activity at DEBUG level. Not for long term use in production."""


REQUIRED = ('GUARD_ID', 'GUARD_COOKIE_PREFIX', 'GUARD_ENGINE_URL')
EXTENSIONS = ('default', 'dynamic')

_env_pattern = re.compile(r'^\$\{(.*)}(.*)')


def resolve_env(value: Any) -> Any:
    """
    Resolve ``${ENVVAR}suffix`` against the process environment.

    Any other value is returned as is.

    Raises
    ------
    :class:`.ConfigurationError`
        Raised if ENVVAR is not set.

    """
    if not isinstance(value, str):
        return value
    match = _env_pattern.match(value)
    if match is None:
        return value
    name, suffix = match.groups()
    if name not in os.environ:
        raise ConfigurationError(f'Environment variable {name} is not set')
    return os.environ[name] + suffix


def compile_passthru(urls: Optional[str]) -> Tuple[Pattern, ...]:
    """Compile a comma-separated list of pass-through regexes."""
    if not urls:
        return ()
    patterns = []
    for expression in urls.split(','):
        expression = expression.strip()
        if not expression:
            continue
        try:
            patterns.append(re.compile(expression))
        except re.error as e:
            raise ConfigurationError(
                f'Invalid pass-through regex {expression!r}: {e}'
            ) from e
    return tuple(patterns)


class GuardConfig(NamedTuple):
    """Validated guard configuration."""

    guard_id: str
    cookie_prefix: str
    engine_url: str
    default_entity_id: str = ''
    passthru: Tuple[Pattern, ...] = ()
    cookie_domain: Optional[str] = None
    extension: str = 'default'
    debug: bool = False

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'GuardConfig':
        """
        Validate a Flask config.

        Parameters
        ----------
        config : dict
            Usually ``app.config``.

        Returns
        -------
        :class:`.GuardConfig`

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if a required key is missing or empty, or if a value is
            invalid.

        """
        values = {key: resolve_env(config.get(key)) for key in (
            REQUIRED + ('GUARD_DEFAULT_ENTITY_ID', 'GUARD_PASSTHRU_URLS',
                        'GUARD_COOKIE_DOMAIN', 'GUARD_EXTENSION')
        )}
        missing = [key for key in REQUIRED if not values[key]]
        if missing:
            raise ConfigurationError(
                f'Missing required config parameter: {", ".join(missing)}'
            )
        extension = values['GUARD_EXTENSION'] or 'default'
        if extension not in EXTENSIONS:
            raise ConfigurationError(f'Unknown guard extension: {extension}')
        return cls(
            guard_id=values['GUARD_ID'],
            cookie_prefix=values['GUARD_COOKIE_PREFIX'],
            engine_url=values['GUARD_ENGINE_URL'],
            default_entity_id=values['GUARD_DEFAULT_ENTITY_ID'] or '',
            passthru=compile_passthru(values['GUARD_PASSTHRU_URLS']),
            cookie_domain=values['GUARD_COOKIE_DOMAIN'] or None,
            extension=extension,
            debug=bool(config.get('GUARD_DEBUG')
                       or os.environ.get('GUARD_DEBUG') == '1')
        )
