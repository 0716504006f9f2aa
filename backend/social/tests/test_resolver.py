"""
Tests for the relationship resolver.

CRITICAL: one scan per call, whatever the number of roots (no N+1), and
edges are only ever counted against the roots passed in.
"""

import uuid

from django.db import connection
from django.test import TestCase
from django.test.utils import CaptureQueriesContext

from ..models import Like
from ..resolver import INBOUND, OUTBOUND, RelationshipResolver
from .helpers import ago, like, make_user, make_video, playlist, subscribe


class LikeResolutionTestCase(TestCase):

    def setUp(self):
        self.resolver = RelationshipResolver()
        self.owner = make_user('owner')
        self.viewer = make_user('viewer')
        self.other = make_user('other')
        self.v1 = make_video(self.owner, 'One')
        self.v2 = make_video(self.owner, 'Two')
        self.v3 = make_video(self.owner, 'Three')
        like(self.viewer, self.v1)
        like(self.other, self.v1)
        like(self.other, self.v2)

    def test_counts_and_viewer_flag(self):
        result = self.resolver.resolve(
            [self.v1.id, self.v2.id, self.v3.id], 'like:video', INBOUND, viewer_id=self.viewer.id
        )

        self.assertEqual(result[self.v1.id].count, 2)
        self.assertTrue(result[self.v1.id].viewer_has_edge)
        self.assertEqual(result[self.v2.id].count, 1)
        self.assertFalse(result[self.v2.id].viewer_has_edge)
        self.assertEqual(result[self.v3.id].count, 0)
        self.assertFalse(result[self.v3.id].viewer_has_edge)

    def test_anonymous_viewer_never_has_edge(self):
        result = self.resolver.resolve([self.v1.id, self.v2.id], 'like:video')

        self.assertFalse(any(entry.viewer_has_edge for entry in result.values()))

    def test_single_query_regardless_of_root_count(self):
        roots = [self.v1.id, self.v2.id, self.v3.id] + [uuid.uuid4() for _ in range(20)]

        with self.assertNumQueries(1):
            result = self.resolver.resolve(roots, 'like:video', viewer_id=self.viewer.id)

        self.assertEqual(len(result), len(roots))

    def test_no_n_plus_one_queries(self):
        """
        Fifty liked videos resolve in one query; loading them one by one
        would cost fifty.
        """
        videos = [make_video(self.owner, f'Bulk {i}') for i in range(50)]
        for video in videos:
            like(self.viewer, video)

        with CaptureQueriesContext(connection) as context:
            result = self.resolver.resolve([video.id for video in videos], 'like:video', viewer_id=self.viewer.id)

        self.assertEqual(len(context), 1, f'Expected 1 query, got {len(context)}')
        self.assertTrue(all(entry.count == 1 and entry.viewer_has_edge for entry in result.values()))

    def test_empty_root_set_issues_no_query(self):
        with self.assertNumQueries(0):
            self.assertEqual(self.resolver.resolve([], 'like:video'), {})

    def test_missing_roots_get_zero_entries(self):
        missing = uuid.uuid4()
        result = self.resolver.resolve([missing], 'like:video')

        self.assertEqual(result[missing].count, 0)
        self.assertIsNone(result[missing].sample_edges)

    def test_dangling_like_is_not_counted(self):
        """3 live likes plus one like on a target that no longer exists -> 3."""
        third = make_user('third')
        like(third, self.v1)
        like(self.viewer, uuid.uuid4())

        result = self.resolver.resolve([self.v1.id], 'like:video')

        self.assertEqual(result[self.v1.id].count, 3)

    def test_like_kinds_are_separate(self):
        like(self.viewer, self.v2.id, kind=Like.TargetKind.COMMENT)

        result = self.resolver.resolve([self.v2.id], 'like:video', viewer_id=self.viewer.id)

        self.assertEqual(result[self.v2.id].count, 1)
        self.assertFalse(result[self.v2.id].viewer_has_edge)

    def test_outbound_sample_skips_deleted_targets(self):
        like(self.viewer, self.v3)
        like(self.viewer, uuid.uuid4())

        with self.assertNumQueries(2):
            result = self.resolver.resolve([self.viewer.id], 'like:video', OUTBOUND, sample=True)

        entry = result[self.viewer.id]
        self.assertEqual(entry.count, 2)
        self.assertEqual(set(entry.sample_edges), {self.v1.id, self.v3.id})

    def test_outbound_sample_carries_like_times(self):
        Like.objects.create(liked_by=self.viewer, target_kind='video', target_id=self.v3.id, created_at=ago(5))

        entry = self.resolver.resolve([self.viewer.id], 'like:video', OUTBOUND, sample=True)[self.viewer.id]

        self.assertEqual(set(entry.sample_times), {self.v1.id, self.v3.id})
        self.assertEqual(entry.sample_times[self.v3.id], ago(5))
        self.assertIsNone(self.resolver.resolve([self.v1.id], 'like:video', sample=True)[self.v1.id].sample_times)

    def test_unknown_edge_kind(self):
        with self.assertRaises(ValueError):
            self.resolver.resolve([self.v1.id], 'like:playlist')
        with self.assertRaises(ValueError):
            self.resolver.resolve([self.v1.id], 'comment', OUTBOUND)


class SubscriptionResolutionTestCase(TestCase):

    def setUp(self):
        self.resolver = RelationshipResolver()
        self.channel = make_user('channel')
        self.fan = make_user('fan')
        self.lurker = make_user('lurker')
        subscribe(self.fan, self.channel)
        subscribe(self.lurker, self.channel)
        subscribe(self.channel, self.fan)

    def test_subscriber_counts(self):
        result = self.resolver.resolve(
            [self.channel.id, self.fan.id, self.lurker.id], 'subscription', INBOUND, viewer_id=self.fan.id
        )

        self.assertEqual(result[self.channel.id].count, 2)
        self.assertTrue(result[self.channel.id].viewer_has_edge)
        self.assertEqual(result[self.fan.id].count, 1)
        self.assertFalse(result[self.fan.id].viewer_has_edge)
        self.assertEqual(result[self.lurker.id].count, 0)

    def test_viewer_edges(self):
        edges = self.resolver.viewer_edges([self.fan.id, self.lurker.id], 'subscription', self.channel.id)

        self.assertEqual(edges, {self.fan.id})

    def test_viewer_edges_anonymous(self):
        with self.assertNumQueries(0):
            self.assertEqual(self.resolver.viewer_edges([self.fan.id], 'subscription', None), set())


class MembershipResolutionTestCase(TestCase):

    def setUp(self):
        self.resolver = RelationshipResolver()
        self.owner = make_user('owner')
        self.videos = [make_video(self.owner, f'V{i}') for i in range(3)]

    def test_members_in_position_order(self):
        collection = playlist(self.owner, videos=[self.videos[2], self.videos[0], self.videos[1]])

        entry = self.resolver.resolve([collection.id], 'membership', sample=True)[collection.id]

        self.assertEqual(entry.count, 3)
        self.assertEqual(entry.sample_edges, [self.videos[2].id, self.videos[0].id, self.videos[1].id])

    def test_dangling_member_is_skipped(self):
        collection = playlist(self.owner, videos=[self.videos[0], uuid.uuid4(), self.videos[1]])

        entry = self.resolver.resolve([collection.id], 'membership', sample=True)[collection.id]

        self.assertEqual(entry.count, 2)
        self.assertEqual(entry.sample_edges, [self.videos[0].id, self.videos[1].id])
