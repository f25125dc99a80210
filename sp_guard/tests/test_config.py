"""Tests for :mod:`sp_guard.config`."""

import os
from unittest import TestCase, mock

from .. import config
from ..exceptions import ConfigurationError

VALID = {
    'GUARD_ID': 'https://sp.example.org/sp',
    'GUARD_COOKIE_PREFIX': 'GUARD_',
    'GUARD_ENGINE_URL': 'https://engine.example.org/WAYF',
}


class TestResolveEnv(TestCase):
    """Config values can refer to the environment."""

    @mock.patch.dict(os.environ, {'GUARD_HOME': '/etc/guard'})
    def test_env_with_suffix(self):
        """``${VAR}suffix`` is the value of VAR plus the suffix."""
        self.assertEqual(config.resolve_env('${GUARD_HOME}/guard.conf'),
                         '/etc/guard/guard.conf')

    def test_plain_value(self):
        """Other values are left alone."""
        self.assertEqual(config.resolve_env('/etc/guard'), '/etc/guard')
        self.assertIsNone(config.resolve_env(None))

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_env_missing(self):
        """An unset variable is a configuration error."""
        with self.assertRaises(ConfigurationError):
            config.resolve_env('${GUARD_HOME}/guard.conf')


class TestGuardConfig(TestCase):
    """Tests for :meth:`config.GuardConfig.from_mapping`."""

    def test_valid(self):
        """A complete config is accepted."""
        guard_config = config.GuardConfig.from_mapping(dict(
            VALID,
            GUARD_PASSTHRU_URLS=r'^/public/, \.css$',
            GUARD_DEFAULT_ENTITY_ID='https://idp.example.org/shibboleth'
        ))
        self.assertEqual(guard_config.guard_id, 'https://sp.example.org/sp')
        self.assertEqual(guard_config.extension, 'default')
        self.assertEqual([p.pattern for p in guard_config.passthru],
                         ['^/public/', r'\.css$'])
        self.assertEqual(guard_config.default_entity_id,
                         'https://idp.example.org/shibboleth')
        self.assertIsNone(guard_config.cookie_domain)

    def test_missing_required(self):
        """Every required key must be set."""
        for key in config.REQUIRED:
            values = dict(VALID)
            values[key] = ''
            with self.assertRaises(ConfigurationError):
                config.GuardConfig.from_mapping(values)

    def test_invalid_regex(self):
        """A pass-through regex that does not compile is an error."""
        with self.assertRaises(ConfigurationError):
            config.GuardConfig.from_mapping(
                dict(VALID, GUARD_PASSTHRU_URLS='^/ok/,([')
            )

    def test_unknown_extension(self):
        """Only known extensions can be configured."""
        with self.assertRaises(ConfigurationError):
            config.GuardConfig.from_mapping(
                dict(VALID, GUARD_EXTENSION='nope')
            )

    @mock.patch.dict(os.environ, {'SP_HOST': 'sp.example.org'})
    def test_env_indirection(self):
        """Values are resolved against the environment."""
        guard_config = config.GuardConfig.from_mapping(
            dict(VALID, GUARD_ID='${SP_HOST}/sp')
        )
        self.assertEqual(guard_config.guard_id, 'sp.example.org/sp')
