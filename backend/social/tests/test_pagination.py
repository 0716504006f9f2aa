"""
Tests for the pagination engine.
"""

from django.test import SimpleTestCase, override_settings

from ..pagination import coerce_positive_int, paginate


class PaginateTestCase(SimpleTestCase):

    def setUp(self):
        self.ordered = list(range(25))

    def test_first_page(self):
        result = paginate(self.ordered, page=1, page_size=10)

        self.assertEqual(result.items, list(range(10)))
        self.assertEqual(result.total_count, 25)
        self.assertEqual(result.total_pages, 3)
        self.assertEqual(result.current_page, 1)
        self.assertTrue(result.has_next_page)
        self.assertEqual(result.next_page, 2)

    def test_last_partial_page(self):
        result = paginate(self.ordered, page=3, page_size=10)

        self.assertEqual(result.items, [20, 21, 22, 23, 24])
        self.assertFalse(result.has_next_page)
        self.assertIsNone(result.next_page)

    def test_page_past_the_end_is_not_an_empty_set(self):
        """A page beyond the last one has no items but keeps the real totals."""
        result = paginate(self.ordered, page=7, page_size=10)

        self.assertEqual(result.items, [])
        self.assertEqual(result.total_count, 25)
        self.assertFalse(result.has_next_page)
        self.assertFalse(result.is_empty)
        self.assertFalse(result.to_dict()['empty'])

    def test_empty_set(self):
        result = paginate([], page=1, page_size=10)

        self.assertEqual(result.total_pages, 0)
        self.assertTrue(result.is_empty)
        self.assertEqual(result.to_dict(), {
            'items': [],
            'total_count': 0,
            'total_pages': 0,
            'current_page': 1,
            'has_next_page': False,
            'next_page': None,
            'empty': True,
        })

    def test_bad_values_fall_back_to_defaults(self):
        for page, page_size in [('abc', '-3'), (None, None), (0, 0), ('', 'ten')]:
            result = paginate(self.ordered, page=page, page_size=page_size)
            self.assertEqual(result.current_page, 1)
            self.assertEqual(len(result.items), 10)

    def test_numeric_strings_are_accepted(self):
        result = paginate(self.ordered, page='2', page_size='5')

        self.assertEqual(result.items, [5, 6, 7, 8, 9])
        self.assertEqual(result.total_pages, 5)

    @override_settings(SOCIAL_ENGINE={'MAX_PAGE_SIZE': 5})
    def test_page_size_is_clamped(self):
        result = paginate(self.ordered, page=1, page_size=50)

        self.assertEqual(len(result.items), 5)
        self.assertEqual(result.total_pages, 5)

    @override_settings(SOCIAL_ENGINE={'DEFAULT_PAGE_SIZE': 4})
    def test_default_page_size_comes_from_settings(self):
        result = paginate(self.ordered)

        self.assertEqual(result.items, [0, 1, 2, 3])

    def test_pages_partition_the_ordered_set(self):
        """Concatenating every page gives back the ordered set: no overlap, no gaps."""
        for page_size in (1, 3, 7, 10, 25, 40):
            first = paginate(self.ordered, page=1, page_size=page_size)
            collected = []
            for page in range(1, first.total_pages + 1):
                collected.extend(paginate(self.ordered, page=page, page_size=page_size).items)
            self.assertEqual(collected, self.ordered, f"page_size={page_size}")

    def test_never_reorders(self):
        ordered = [3, 1, 2]
        self.assertEqual(paginate(ordered, 1, 10).items, [3, 1, 2])


class CoercePositiveIntTestCase(SimpleTestCase):

    def test_coercion(self):
        self.assertEqual(coerce_positive_int('4', 1), 4)
        self.assertEqual(coerce_positive_int(-1, 1), 1)
        self.assertEqual(coerce_positive_int(None, 9), 9)
        self.assertEqual(coerce_positive_int('1.5', 2), 2)

    def test_non_finite_numbers_fall_back(self):
        self.assertEqual(coerce_positive_int(float('inf'), 1), 1)
        self.assertEqual(coerce_positive_int(float('-inf'), 10), 10)
        self.assertEqual(coerce_positive_int(float('nan'), 10), 10)

    def test_infinite_page_is_first_page(self):
        result = paginate(list(range(5)), page=float('inf'), page_size=float('inf'))

        self.assertEqual(result.current_page, 1)
        self.assertEqual(result.items, [0, 1, 2, 3, 4])
