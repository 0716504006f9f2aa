"""
Tests for the view composer: whitelisted projection, batched owner
summaries, bounded depth.
"""

import uuid

from django.test import TestCase

from ..composer import (
    NO_OWNER,
    OWNER_SUMMARY_FIELDS,
    VIDEO_CARD_FIELDS,
    ViewComposer,
    project,
)
from .helpers import make_user, make_video, subscribe


class OwnerSummaryTestCase(TestCase):

    def setUp(self):
        self.composer = ViewComposer()
        self.alice = make_user('alice', full_name='Alice A', avatar_url='https://img.test/a.png')
        self.bob = make_user('bob')
        self.viewer = make_user('viewer')
        subscribe(self.viewer, self.alice)
        subscribe(self.bob, self.alice)

    def test_depth_one_is_profile_only(self):
        summaries = self.composer.load_owner_summaries([self.alice.id])

        self.assertEqual(summaries[self.alice.id], {
            'id': self.alice.id,
            'username': 'alice',
            'full_name': 'Alice A',
            'avatar_url': 'https://img.test/a.png',
        })

    def test_credentials_never_projected(self):
        summary = self.composer.load_owner_summaries([self.alice.id], depth=2)[self.alice.id]

        for name in ('password', 'email', 'last_login', 'is_superuser', 'is_staff'):
            self.assertNotIn(name, summary)

    def test_one_query_for_repeated_owners(self):
        owner_ids = [self.alice.id, self.bob.id, self.alice.id, self.alice.id, self.bob.id]

        with self.assertNumQueries(1):
            summaries = self.composer.load_owner_summaries(owner_ids)

        self.assertEqual(set(summaries), {self.alice.id, self.bob.id})

    def test_depth_two_adds_subscriber_fields(self):
        with self.assertNumQueries(2):
            summaries = self.composer.load_owner_summaries(
                [self.alice.id, self.bob.id], depth=2, viewer_id=self.viewer.id
            )

        self.assertEqual(summaries[self.alice.id]['subscribers_count'], 2)
        self.assertTrue(summaries[self.alice.id]['is_subscribed'])
        self.assertEqual(summaries[self.bob.id]['subscribers_count'], 0)
        self.assertFalse(summaries[self.bob.id]['is_subscribed'])

    def test_depth_two_anonymous(self):
        summary = self.composer.load_owner_summaries([self.alice.id], depth=2)[self.alice.id]

        self.assertFalse(summary['is_subscribed'])

    def test_depth_is_bounded(self):
        for depth in (0, 3):
            with self.assertRaises(ValueError):
                self.composer.load_owner_summaries([self.alice.id], depth=depth)

    def test_missing_owner_is_absent(self):
        missing = uuid.uuid4()

        summaries = self.composer.load_owner_summaries([missing, self.bob.id])

        self.assertNotIn(missing, summaries)
        self.assertIn(self.bob.id, summaries)

    def test_no_ids_no_query(self):
        with self.assertNumQueries(0):
            self.assertEqual(self.composer.load_owner_summaries([None]), {})


class ComposeTestCase(TestCase):

    def setUp(self):
        self.composer = ViewComposer()
        owner = make_user('owner')
        self.video = make_video(owner, 'Clip', views=7)
        self.record = {
            'id': self.video.id,
            'title': 'Clip',
            'description': 'About Clip',
            'thumbnail_url': 'https://cdn.test/Clip.jpg',
            'duration': 0.0,
            'views': 7,
            'created_at': self.video.created_at,
            'video_url': 'https://cdn.test/video.mp4',
            'owner_id': owner.id,
        }

    def test_projection_is_a_whitelist(self):
        view = self.composer.compose(self.record, fields=VIDEO_CARD_FIELDS)

        self.assertEqual(set(view), set(VIDEO_CARD_FIELDS))
        self.assertNotIn('video_url', view)
        self.assertNotIn('owner_id', view)

    def test_missing_owner_composes_with_null(self):
        view = self.composer.compose(self.record, None, {'likes_count': 0}, VIDEO_CARD_FIELDS)

        self.assertIsNone(view['owner'])
        self.assertEqual(view['likes_count'], 0)

    def test_no_owner_marker_omits_key(self):
        view = self.composer.compose(self.record, NO_OWNER, fields=('id',))

        self.assertEqual(view, {'id': self.video.id})

    def test_derived_fields_override(self):
        summary = project({'id': 1, 'username': 'u', 'full_name': '', 'avatar_url': ''}, OWNER_SUMMARY_FIELDS)
        view = self.composer.compose(self.record, summary, {'views': 8, 'is_liked': True}, ('id', 'views'))

        self.assertEqual(view['views'], 8)
        self.assertTrue(view['is_liked'])
        self.assertEqual(view['owner']['username'], 'u')
