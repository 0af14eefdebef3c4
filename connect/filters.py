"""
================================================================================
CONNECTUP - LIST FILTERS & PAGINATION
================================================================================

@file        filters.py
@description Query-string parsing shared by the admin and listing endpoints

QUERY PARAMETERS
================================================================================
limit        int, default 10, values <= 0 fall back to 10
page         int, default 0, negative values fall back to 0
countries    comma separated names
states       comma separated names
gender       comma separated genders
fromAge      int; an unparsable value ends parsing without an error
toAge        int; same as fromAge
industries   comma separated industry ids
isVerified   boolean (1, t, T, TRUE, true, True, 0, f, F, FALSE, false, False)
isCompleted  boolean, same vocabulary
searchText   free text

Pagination is offset based: ``offset = page * limit``.

================================================================================
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from django.db.models import Q

from .errors import ClientError
from .models import profile_completed_q


DEFAULT_LIMIT = 10

TRUE_VALUES = {'1', 't', 'T', 'TRUE', 'true', 'True'}
FALSE_VALUES = {'0', 'f', 'F', 'FALSE', 'false', 'False'}


class FilterError(ValueError):
    pass


@dataclass
class UserFilterQueries:
    limit: int = DEFAULT_LIMIT
    page: int = 0
    countries: List[str] = field(default_factory=list)
    states: List[str] = field(default_factory=list)
    gender: List[str] = field(default_factory=list)
    from_age: Optional[int] = None
    to_age: Optional[int] = None
    industries: List[int] = field(default_factory=list)
    is_verified: Optional[bool] = None
    is_completed: Optional[bool] = None
    search_text: str = ''

    @property
    def offset(self):
        return self.page * self.limit


@dataclass
class IndustryFilterQueries:
    limit: int = DEFAULT_LIMIT
    page: int = 0
    search_text: str = ''
    category: str = ''

    @property
    def offset(self):
        return self.page * self.limit


def parse_bool(value):
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise FilterError(f"invalid boolean {value!r}")


def _parse_int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise FilterError(f"{name} must be an integer, got {value!r}")


def _split(value):
    return value.split(',') if value else []


def parse_limit_and_page(params):
    limit = DEFAULT_LIMIT
    if params.get('limit'):
        limit = _parse_int(params['limit'], 'limit')
        if limit <= 0:
            limit = DEFAULT_LIMIT

    page = 0
    if params.get('page'):
        page = max(_parse_int(params['page'], 'page'), 0)

    return limit, page


def get_filter_queries(request):
    """
    Parse the user list filters from ``request.GET``.

    Raises FilterError for a malformed limit, page, industry id or boolean.
    A malformed ``fromAge`` or ``toAge`` stops parsing and returns the
    filters collected so far, leaving the later ones at their defaults.
    """
    params = request.GET
    filters = UserFilterQueries()
    filters.limit, filters.page = parse_limit_and_page(params)
    filters.countries = _split(params.get('countries'))
    filters.states = _split(params.get('states'))
    filters.gender = _split(params.get('gender'))

    for param, attr in (('fromAge', 'from_age'), ('toAge', 'to_age')):
        if params.get(param):
            try:
                setattr(filters, attr, int(params[param]))
            except ValueError:
                return filters

    if params.get('industries'):
        filters.industries = [
            _parse_int(v, 'industries') for v in params['industries'].split(',')
        ]

    if params.get('isVerified'):
        filters.is_verified = parse_bool(params['isVerified'])

    if params.get('isCompleted'):
        filters.is_completed = parse_bool(params['isCompleted'])

    filters.search_text = params.get('searchText', '')
    return filters


def get_industries_filters(request):
    params = request.GET
    limit, page = parse_limit_and_page(params)
    return IndustryFilterQueries(
        limit=limit,
        page=page,
        search_text=params.get('searchText', ''),
        category=params.get('category', ''),
    )


def paginate(queryset, filters):
    return queryset[filters.offset:filters.offset + filters.limit]


def _years_ago(today, years):
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return today.replace(year=today.year - years, day=28)


def apply_user_filters(queryset, filters, today=None):
    """Narrow a User queryset with parsed ``UserFilterQueries``."""
    today = today or date.today()

    if filters.countries:
        queryset = queryset.filter(country__in=filters.countries)
    if filters.states:
        queryset = queryset.filter(state__in=filters.states)
    if filters.gender:
        queryset = queryset.filter(gender__in=filters.gender)

    # Age N covers birthdays in (today - N - 1 years, today - N years]
    if filters.from_age is not None:
        queryset = queryset.filter(date_of_birth__lte=_years_ago(today, filters.from_age))
    if filters.to_age is not None:
        queryset = queryset.filter(date_of_birth__gt=_years_ago(today, filters.to_age + 1))

    if filters.industries:
        queryset = queryset.filter(industries__id__in=filters.industries).distinct()

    if filters.is_verified is not None:
        queryset = queryset.filter(email_verified_at__isnull=not filters.is_verified)

    if filters.is_completed is not None:
        completed = profile_completed_q()
        queryset = queryset.filter(completed if filters.is_completed else ~completed)

    if filters.search_text:
        text = filters.search_text
        queryset = queryset.filter(
            Q(name__icontains=text) | Q(email__icontains=text) | Q(phone__icontains=text)
        )

    return queryset


def filters_or_client_error(request, parser=get_filter_queries):
    try:
        return parser(request)
    except FilterError as e:
        raise ClientError(400, "errors in getting filters", str(e))


def paginated(queryset, filters, serialize):
    """Slice ``queryset`` and wrap the page in the list envelope."""
    total = queryset.count()
    return {
        "items": [serialize(obj) for obj in paginate(queryset, filters)],
        "total": total,
        "page": filters.page,
        "limit": filters.limit,
    }
