import pytest

from sp_guard import factory
from sp_guard.store import PodStore

GUARD_ID = 'https://sp.example.org/sp'
ENGINE_URL = 'https://engine.example.org/samlengine/WAYF'
DEFAULT_ENTITY_ID = 'https://idp.example.org/shibboleth'


@pytest.fixture()
def store():
    return PodStore()


@pytest.fixture()
def app(store):
    return factory.create_web_app(
        store=store,
        GUARD_ID=GUARD_ID,
        GUARD_ENGINE_URL=ENGINE_URL,
        GUARD_DEFAULT_ENTITY_ID=DEFAULT_ENTITY_ID,
        GUARD_PASSTHRU_URLS=r'^/public/,\.css$',
        GUARD_COOKIE_DOMAIN=None,
        GUARD_EXTENSION='default'
    )


@pytest.fixture()
def dynamic_app(store):
    return factory.create_web_app(
        store=store,
        GUARD_ID='https://DYNAMIC_GUARD_DOMAIN/sp',
        GUARD_ENGINE_URL=ENGINE_URL,
        GUARD_DEFAULT_ENTITY_ID=DEFAULT_ENTITY_ID,
        GUARD_PASSTHRU_URLS='',
        GUARD_COOKIE_DOMAIN='.DYNAMIC_GUARD_DOMAIN',
        GUARD_EXTENSION='dynamic'
    )


@pytest.fixture()
def guard(app):
    return app.config['sp_guard.Guard']


@pytest.fixture()
def client(app):
    return app.test_client(use_cookies=False)
