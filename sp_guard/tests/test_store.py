"""Tests for :mod:`sp_guard.store`."""

import threading
from datetime import datetime, timedelta
from unittest import TestCase

from pytz import UTC

from .. import store
from ..domain import Bag, Pod
from ..exceptions import UnknownSessionError


class TestPodStore(TestCase):
    """The store keeps Pods by session ID."""

    def setUp(self):
        self.pods = store.PodStore()

    def test_create(self):
        """A new Pod is stored under a fresh session ID."""
        pod = self.pods.create('https', 'sp.example.org', '/app?x=1',
                               {'x': ['1']})
        self.assertTrue(pod.session_id.startswith(store.SESSION_ID_PREFIX))
        self.assertIs(self.pods.get(pod.session_id), pod)
        self.assertFalse(pod.is_authenticated)
        self.assertEqual(pod.original_url, 'https://sp.example.org/app?x=1')
        self.assertEqual(pod.request_parameters, {'x': ['1']})

    def test_session_ids_are_unique(self):
        """Session IDs do not repeat."""
        ids = {self.pods.create('http', 'h', '/').session_id
               for _ in range(500)}
        self.assertEqual(len(ids), 500)
        self.assertEqual(len(self.pods), 500)

    def test_put_get_remove(self):
        """Pods can be put, retrieved and removed explicitly."""
        pod = Pod('GUARD_foo', 'http', 'localhost', '/')
        self.pods.put('GUARD_foo', pod)
        self.assertIn('GUARD_foo', self.pods)
        self.assertIs(self.pods.remove('GUARD_foo'), pod)
        self.assertIsNone(self.pods.get('GUARD_foo'))
        self.assertIsNone(self.pods.remove('GUARD_foo'))

    def test_get_nothing(self):
        """Looking up an empty session ID gets nothing."""
        self.assertIsNone(self.pods.get(None))
        self.assertIsNone(self.pods.get(''))

    def test_bind(self):
        """Attributes in a bag are merged into the Pod."""
        pod = self.pods.create('http', 'localhost', '/')
        bag = Bag(pod.session_id, {'eduPersonPrincipalName': 'alice'})
        self.assertIs(self.pods.bind(pod.session_id, bag), pod)
        self.assertTrue(pod.is_authenticated)
        self.assertEqual(self.pods.attributes(pod.session_id),
                         {'eduPersonPrincipalName': 'alice'})
        self.assertIs(pod.bag, bag)

    def test_bind_unknown(self):
        """Binding to a session that does not exist is an error."""
        with self.assertRaises(UnknownSessionError):
            self.pods.bind('GUARD_nope', Bag('GUARD_nope', {'a': 'b'}))
        self.assertEqual(len(self.pods), 0)

    def test_purge(self):
        """Only Pods older than the cutoff are purged."""
        old = self.pods.create('http', 'localhost', '/')
        old.created = datetime.now(tz=UTC) - timedelta(hours=3)
        new = self.pods.create('http', 'localhost', '/')
        self.assertEqual(self.pods.purge(timedelta(hours=1)), 1)
        self.assertNotIn(old.session_id, self.pods)
        self.assertIn(new.session_id, self.pods)

    def test_clear(self):
        """Clearing drops everything."""
        self.pods.create('http', 'localhost', '/')
        self.pods.clear()
        self.assertEqual(len(self.pods), 0)

    def test_concurrent_create_and_bind(self):
        """Concurrent creates and binds do not lose Pods or attributes."""
        created = []

        def work(n):
            for i in range(50):
                pod = self.pods.create('http', 'localhost', f'/{n}/{i}')
                self.pods.bind(pod.session_id,
                               Bag(pod.session_id, {'n': n, 'i': i}))
                created.append(pod.session_id)

        threads = [threading.Thread(target=work, args=(n,))
                   for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(self.pods), 400)
        self.assertEqual(len(set(created)), 400)
        for session_id in created:
            self.assertTrue(self.pods.get(session_id).is_authenticated)
