"""Listing tests for the query service."""
from datetime import date, datetime, timedelta, timezone

import pytest

from mutual_aid.errors import FieldValidationError, NotFoundError
from mutual_aid.models.request import HelpCategory, HelpRequest, RequestStatus
from mutual_aid.models.response import VolunteerResponse
from mutual_aid.models.user import Role
from mutual_aid.services import matching_engine, query_service
from mutual_aid.services.query_service import RequestFilter
from tests.conftest import make_user


def _add_request(db, owner, title, description="Please help, details to follow shortly.",
                 category=HelpCategory.FOOD, city="Kyiv", status=RequestStatus.ACTIVE, created_at=None):
    help_request = HelpRequest(
        owner_id=owner.user_id,
        title=title,
        description=description,
        category=category,
        city=city,
        status=status,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(help_request)
    db.commit()
    return help_request.request_id


@pytest.fixture
def owner(db):
    return make_user(db, "Olena", Role.USER)


@pytest.fixture
def volunteer(db):
    return make_user(db, "Taras", Role.VOLUNTEER)


def _titles(page):
    return [item.title for item in page.data]


class TestPaging:

    def test_defaults_come_from_settings(self, db, settings, owner):
        for i in range(3):
            _add_request(db, owner, f"Request {i}")
        page = query_service.get_requests(db, settings, RequestFilter())
        assert page.meta.current_page == 1
        assert page.meta.items_per_page == settings.DEFAULT_PAGE_SIZE == 20
        assert page.meta.total_items == 3
        assert page.meta.total_pages == 1

    def test_second_page(self, db, settings, owner):
        for i in range(5):
            _add_request(db, owner, f"Request {i}")
        page = query_service.get_requests(db, settings, RequestFilter(page=2, limit=2, sort_by="title", order="asc"))
        assert _titles(page) == ["Request 2", "Request 3"]
        assert page.meta.total_pages == 3
        assert page.meta.total_items == 5

    def test_page_past_the_end_is_empty(self, db, settings, owner):
        _add_request(db, owner, "Only one")
        page = query_service.get_requests(db, settings, RequestFilter(page=4, limit=10))
        assert page.data == []
        assert page.meta.total_items == 1

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 5)])
    def test_page_and_limit_must_be_positive(self, db, settings, page, limit):
        with pytest.raises(FieldValidationError):
            query_service.get_requests(db, settings, RequestFilter(page=page, limit=limit))


class TestSorting:

    def test_default_is_newest_first(self, db, settings, owner):
        now = datetime.now(timezone.utc)
        _add_request(db, owner, "Oldest", created_at=now - timedelta(days=2))
        _add_request(db, owner, "Newest", created_at=now)
        _add_request(db, owner, "Middle", created_at=now - timedelta(days=1))
        page = query_service.get_requests(db, settings, RequestFilter())
        assert _titles(page) == ["Newest", "Middle", "Oldest"]

    def test_sort_by_city_ascending(self, db, settings, owner):
        _add_request(db, owner, "In Lviv", city="Lviv")
        _add_request(db, owner, "In Dnipro", city="Dnipro")
        page = query_service.get_requests(db, settings, RequestFilter(sort_by="city", order="asc"))
        assert _titles(page) == ["In Dnipro", "In Lviv"]

    def test_unknown_sort_field(self, db, settings):
        with pytest.raises(FieldValidationError):
            query_service.get_requests(db, settings, RequestFilter(sort_by="owner_id"))

    def test_unknown_sort_order(self, db, settings):
        with pytest.raises(FieldValidationError):
            query_service.get_requests(db, settings, RequestFilter(order="sideways"))


class TestFilters:

    def test_search_is_case_insensitive_over_title_and_description(self, db, settings, owner):
        _add_request(db, owner, "Buy FOOD for grandma")
        _add_request(db, owner, "Fix the door", description="Also bring some food if you can, thanks.")
        _add_request(db, owner, "Walk the dog")
        page = query_service.get_requests(db, settings, RequestFilter(search="food", sort_by="title", order="asc"))
        assert _titles(page) == ["Buy FOOD for grandma", "Fix the door"]

    def test_search_treats_wildcards_literally(self, db, settings, owner):
        _add_request(db, owner, "Discount 100% needed")
        _add_request(db, owner, "Something else")
        page = query_service.get_requests(db, settings, RequestFilter(search="%"))
        assert _titles(page) == ["Discount 100% needed"]

    def test_category_and_status_sets(self, db, settings, owner):
        _add_request(db, owner, "Medicine", category=HelpCategory.MEDICAL)
        _add_request(db, owner, "Coat", category=HelpCategory.CLOTHING)
        _add_request(db, owner, "Bread", category=HelpCategory.FOOD, status=RequestStatus.COMPLETED)
        page = query_service.get_requests(db, settings, RequestFilter(
            categories=[HelpCategory.MEDICAL, HelpCategory.FOOD],
            statuses=[RequestStatus.ACTIVE],
        ))
        assert _titles(page) == ["Medicine"]

    def test_city_equality(self, db, settings, owner):
        _add_request(db, owner, "Kyiv one", city="Kyiv")
        _add_request(db, owner, "Kyivska oblast", city="Kyivska")
        page = query_service.get_requests(db, settings, RequestFilter(city="Kyiv"))
        assert _titles(page) == ["Kyiv one"]

    def test_owner_filter(self, db, settings, owner):
        other = make_user(db, "Petro", Role.USER)
        _add_request(db, owner, "Mine")
        _add_request(db, other, "Theirs")
        page = query_service.get_requests(db, settings, RequestFilter(owner_id=owner.user_id))
        assert _titles(page) == ["Mine"]
        assert page.data[0].owner.name == "Olena"

    def test_created_range_is_inclusive_of_last_day(self, db, settings, owner):
        _add_request(db, owner, "Before", created_at=datetime(2024, 7, 31, 23, 0, tzinfo=timezone.utc))
        _add_request(db, owner, "First day", created_at=datetime(2024, 8, 1, 0, 0, tzinfo=timezone.utc))
        _add_request(db, owner, "Last evening", created_at=datetime(2024, 8, 31, 23, 30, tzinfo=timezone.utc))
        _add_request(db, owner, "After", created_at=datetime(2024, 9, 1, 0, 30, tzinfo=timezone.utc))
        page = query_service.get_requests(db, settings, RequestFilter(
            created_from=date(2024, 8, 1), created_to=date(2024, 8, 31), sort_by="title", order="asc",
        ))
        assert _titles(page) == ["First day", "Last evening"]


class TestProjections:

    def test_list_shows_accepting_volunteer(self, db, settings, owner, volunteer):
        taken = _add_request(db, owner, "Taken")
        _add_request(db, owner, "Open")
        matching_engine.create_response(db, taken, volunteer.user_id)

        page = query_service.get_requests(db, settings, RequestFilter(sort_by="title", order="desc"))
        taken_item, open_item = page.data
        assert taken_item.has_response is True
        assert taken_item.volunteer.user_id == volunteer.user_id
        assert taken_item.volunteer.name == "Taras"
        assert taken_item.status == RequestStatus.IN_PROGRESS
        assert open_item.has_response is False
        assert open_item.volunteer is None

    def test_request_detail(self, db, owner, volunteer):
        rid = _add_request(db, owner, "Detail")
        matching_engine.create_response(db, rid, volunteer.user_id)
        detail = query_service.get_request_detail(db, rid)
        assert detail.owner.user_id == owner.user_id
        assert detail.response_count == 1
        assert [v.user_id for v in detail.volunteers] == [volunteer.user_id]

    def test_request_detail_missing(self, db):
        with pytest.raises(NotFoundError):
            query_service.get_request_detail(db, "missing")

    def test_request_responses(self, db, settings, owner, volunteer):
        rid = _add_request(db, owner, "Responses")
        empty = query_service.get_request_responses(db, settings, rid)
        assert empty.data == []
        assert empty.meta.total_items == 0

        matching_engine.create_response(db, rid, volunteer.user_id)
        page = query_service.get_request_responses(db, settings, rid, page=1, limit=5)
        assert page.meta.total_items == 1
        assert page.data[0].volunteer.email == "taras@example.com"
        assert page.data[0].volunteer.city == "Lviv"

    def test_request_responses_missing_request(self, db, settings):
        with pytest.raises(NotFoundError):
            query_service.get_request_responses(db, settings, "missing")

    def test_volunteer_responses_newest_first(self, db, settings, owner, volunteer):
        now = datetime.now(timezone.utc)
        first = _add_request(db, owner, "First accepted")
        second = _add_request(db, owner, "Second accepted")
        db.add_all([
            VolunteerResponse(request_id=first, volunteer_id=volunteer.user_id, created_at=now - timedelta(hours=1)),
            VolunteerResponse(request_id=second, volunteer_id=volunteer.user_id, created_at=now),
        ])
        db.commit()

        page = query_service.get_volunteer_responses(db, settings, volunteer.user_id)
        assert [item.request.title for item in page.data] == ["Second accepted", "First accepted"]
        assert page.data[0].request.owner_name == "Olena"
        assert page.meta.total_items == 2
