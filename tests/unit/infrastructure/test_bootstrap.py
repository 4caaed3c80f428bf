"""Unit tests for adjudication bootstrap wiring."""

from collections.abc import Iterator
from datetime import date

import pytest

from contencioso.application.services.adjudication_service import AdjudicationService
from contencioso.bootstrap.adjudication import (
    build_adjudication_service,
    build_deadline_calculator,
    get_adjudication_service,
    reset_adjudication_service,
    set_adjudication_service,
)
from contencioso.config.adjudication_config import AdjudicationConfig
from contencioso.domain.services.deadline_calculator import (
    HolidayCalendar,
    WeekendCalendar,
)
from contencioso.infrastructure.stubs import (
    AdjudicationRepositoryStub,
    CommitteeRosterStub,
    EventSinkStub,
)
from tests.helpers import FakeTimeAuthority


@pytest.fixture(autouse=True)
def _reset_singleton() -> Iterator[None]:
    reset_adjudication_service()
    yield
    reset_adjudication_service()


class TestBuildDeadlineCalculator:
    """Tests for calendar selection."""

    def test_weekend_calendar_without_holidays(self) -> None:
        calculator = build_deadline_calculator(AdjudicationConfig())

        assert isinstance(calculator.calendar, WeekendCalendar)
        assert not isinstance(calculator.calendar, HolidayCalendar)

    def test_holiday_calendar_when_configured(self) -> None:
        good_friday = date(2024, 3, 29)
        config = AdjudicationConfig(holidays=(good_friday,))

        calculator = build_deadline_calculator(config)

        assert isinstance(calculator.calendar, HolidayCalendar)
        assert calculator.calendar.holidays == frozenset({good_friday})
        assert not calculator.calendar.is_business_day(good_friday)


class TestBuildAdjudicationService:
    """Tests for wiring the facade."""

    def test_builds_with_supplied_ports(
        self,
        repository: AdjudicationRepositoryStub,
        roster: CommitteeRosterStub,
        event_sink: EventSinkStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        service = build_adjudication_service(
            repository=repository,
            roster=roster,
            event_sink=event_sink,
            time_authority=fake_time,
            config=AdjudicationConfig(),
        )

        assert isinstance(service, AdjudicationService)

    def test_falls_back_to_stubs(self) -> None:
        service = build_adjudication_service(config=AdjudicationConfig())

        assert isinstance(service, AdjudicationService)


class TestSingleton:
    """Tests for the process-wide instance."""

    def test_get_builds_once(self) -> None:
        first = get_adjudication_service()

        assert get_adjudication_service() is first

    def test_set_and_reset(
        self,
        repository: AdjudicationRepositoryStub,
        roster: CommitteeRosterStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        service = build_adjudication_service(
            repository=repository, roster=roster, time_authority=fake_time
        )

        set_adjudication_service(service)
        assert get_adjudication_service() is service

        reset_adjudication_service()
        assert get_adjudication_service() is not service
