from datetime import date

from django.test import RequestFactory, SimpleTestCase, TestCase

from connect.errors import ClientError
from connect.filters import (
    DEFAULT_LIMIT, FilterError, apply_user_filters, filters_or_client_error, get_filter_queries,
    get_industries_filters, parse_bool,
)
from connect.models import Industry, User

from .base import make_user


class FilterQueryParsingTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def parse(self, **params):
        return get_filter_queries(self.factory.get('/api/admin/users/', params))

    def test_defaults(self):
        filters = self.parse()
        self.assertEqual(filters.limit, DEFAULT_LIMIT)
        self.assertEqual(filters.page, 0)
        self.assertEqual(filters.countries, [])
        self.assertIsNone(filters.from_age)
        self.assertIsNone(filters.is_verified)
        self.assertEqual(filters.search_text, '')

    def test_non_positive_limit_and_negative_page_fall_back(self):
        filters = self.parse(limit='0', page='-3')
        self.assertEqual(filters.limit, DEFAULT_LIMIT)
        self.assertEqual(filters.page, 0)

    def test_offset(self):
        filters = self.parse(limit='25', page='2')
        self.assertEqual(filters.offset, 50)

    def test_lists_are_comma_split(self):
        filters = self.parse(countries='India,Kenya', gender='male,female', industries='3,7')
        self.assertEqual(filters.countries, ['India', 'Kenya'])
        self.assertEqual(filters.gender, ['male', 'female'])
        self.assertEqual(filters.industries, [3, 7])

    def test_malformed_limit_is_an_error(self):
        with self.assertRaises(FilterError):
            self.parse(limit='ten')

    def test_malformed_industry_id_is_an_error(self):
        with self.assertRaises(FilterError):
            self.parse(industries='1,x')

    def test_bad_age_stops_parsing_without_error(self):
        filters = self.parse(fromAge='abc', isVerified='true', searchText='bob', countries='India')
        self.assertEqual(filters.countries, ['India'])
        self.assertIsNone(filters.from_age)
        self.assertIsNone(filters.is_verified)
        self.assertEqual(filters.search_text, '')

    def test_bool_vocabulary(self):
        for value in ('1', 't', 'T', 'TRUE', 'true', 'True'):
            self.assertIs(parse_bool(value), True)
        for value in ('0', 'f', 'F', 'FALSE', 'false', 'False'):
            self.assertIs(parse_bool(value), False)
        with self.assertRaises(FilterError):
            parse_bool('yes')

    def test_client_error_wrapper(self):
        request = self.factory.get('/api/x', {'isCompleted': 'maybe'})
        with self.assertRaises(ClientError) as ctx:
            filters_or_client_error(request)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.message_to_user, "errors in getting filters")

    def test_industries_filters(self):
        request = self.factory.get('/api/admin/industries/', {'category': 'showcase', 'searchText': 'fin'})
        filters = get_industries_filters(request)
        self.assertEqual(filters.category, 'showcase')
        self.assertEqual(filters.search_text, 'fin')
        self.assertEqual(filters.limit, DEFAULT_LIMIT)


class ApplyUserFiltersTests(TestCase):
    today = date(2024, 6, 15)

    def setUp(self):
        self.factory = RequestFactory()
        self.young = make_user('young@example.com', 'Young One', date_of_birth=date(2004, 6, 15), country='India')
        self.older = make_user('older@example.com', 'Older Two', date_of_birth=date(1990, 1, 1), country='Kenya')
        self.verified = make_user('verified@example.com', 'Verified', country='India')
        self.verified.email_verified_at = self.verified.date_joined
        self.verified.save()

    def filtered(self, **params):
        filters = get_filter_queries(self.factory.get('/api/admin/users/', params))
        return set(apply_user_filters(User.objects.all(), filters, today=self.today))

    def test_country(self):
        self.assertEqual(self.filtered(countries='India'), {self.young, self.verified})

    def test_age_range(self):
        # young turned 20 today, older is 34
        self.assertEqual(self.filtered(fromAge='20', toAge='20'), {self.young})
        self.assertEqual(self.filtered(fromAge='30'), {self.older})
        self.assertEqual(self.filtered(toAge='19'), set())

    def test_verified(self):
        self.assertEqual(self.filtered(isVerified='true'), {self.verified})
        self.assertEqual(self.filtered(isVerified='false'), {self.young, self.older})

    def test_industries(self):
        industry = Industry.objects.create(name='Fintech')
        self.older.industries.add(industry)
        self.assertEqual(self.filtered(industries=str(industry.id)), {self.older})

    def test_search_text(self):
        self.assertEqual(self.filtered(searchText='older'), {self.older})
