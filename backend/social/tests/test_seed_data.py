"""
Smoke test for the seed_data management command.
"""

from io import StringIO

from django.core.management import call_command
from django.db.models import F
from django.test import TestCase

from ..models import Playlist, Subscription, Tweet, User, Video


class SeedDataTestCase(TestCase):

    def test_seed_creates_a_consistent_dataset(self):
        out = StringIO()

        call_command('seed_data', users=4, videos=6, comments=10, stdout=out)

        self.assertEqual(User.objects.count(), 4)
        self.assertEqual(Video.objects.count(), 6)
        self.assertEqual(Tweet.objects.count(), 4)
        self.assertEqual(Subscription.objects.count(), 12)
        self.assertFalse(Subscription.objects.filter(subscriber=F('channel')).exists())
        self.assertIn('Successfully created', out.getvalue())

    def test_clear_removes_previous_data(self):
        call_command('seed_data', users=2, videos=2, comments=0, stdout=StringIO())

        call_command('seed_data', users=2, videos=3, comments=0, clear=True, stdout=StringIO())

        self.assertEqual(Video.objects.count(), 3)
        self.assertLessEqual(Playlist.objects.count(), 2)
