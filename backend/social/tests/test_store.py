"""
Tests for the entity store and the error handler.
"""

import uuid
from unittest import mock

from django.db import IntegrityError, OperationalError
from django.db.models import Q
from django.test import SimpleTestCase, TestCase

from ..exceptions import (
    InvalidQuery,
    NotFound,
    UpstreamFailure,
    custom_exception_handler,
)
from ..pipeline import QueryIntent, execute
from ..store import EntityStore
from .helpers import make_user, make_video


class EntityStoreTestCase(TestCase):

    def setUp(self):
        self.store = EntityStore()
        self.owner = make_user('owner')
        self.video = make_video(self.owner, 'Clip')
        make_video(self.owner, 'Draft', published=False)

    def test_scan_returns_requested_fields(self):
        rows = self.store.scan('videos', Q(is_published=True), fields=['id', 'title'])

        self.assertEqual(rows, [{'id': self.video.id, 'title': 'Clip'}])

    def test_get_by_id(self):
        self.assertEqual(self.store.get_by_id('users', self.owner.id, fields=['username']), {'username': 'owner'})
        self.assertIsNone(self.store.get_by_id('users', uuid.uuid4()))

    def test_count_where(self):
        self.assertEqual(self.store.count_where('videos'), 2)
        self.assertEqual(self.store.count_where('videos', Q(is_published=False)), 1)

    def test_unknown_collection(self):
        with self.assertRaises(ValueError):
            self.store.scan('channels')

    def test_database_error_becomes_upstream_failure(self):
        with mock.patch('django.db.models.query.QuerySet.count', side_effect=OperationalError('gone')):
            with self.assertLogs('social.store', level='ERROR'):
                with self.assertRaises(UpstreamFailure):
                    self.store.count_where('videos')

    def test_upstream_failure_aborts_pipeline(self):
        with mock.patch('django.db.models.query.QuerySet.values', side_effect=OperationalError('gone')):
            with self.assertLogs('social.store', level='ERROR'):
                with self.assertRaises(UpstreamFailure):
                    execute(QueryIntent('feed'))


class ExceptionHandlerTestCase(SimpleTestCase):

    def test_domain_errors_keep_their_status(self):
        cases = [
            (InvalidQuery('Provide a valid search query'), 400),
            (NotFound('Video not found'), 404),
            (UpstreamFailure(), 503),
        ]
        for exc, status_code in cases:
            response = custom_exception_handler(exc, {})
            self.assertEqual(response.status_code, status_code)
            self.assertEqual(response.data, {'error': str(exc.detail)})

    def test_integrity_error_is_conflict(self):
        response = custom_exception_handler(IntegrityError('duplicate key'), {})

        self.assertEqual(response.status_code, 409)

    def test_value_error_is_bad_request(self):
        response = custom_exception_handler(ValueError('bad input'), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {'error': 'bad input'})

    def test_unexpected_error_is_logged(self):
        with self.assertLogs('social.exceptions', level='ERROR'):
            response = custom_exception_handler(RuntimeError('boom'), {})

        self.assertEqual(response.status_code, 500)
        self.assertNotIn('boom', response.data['error'])
