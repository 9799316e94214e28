from datetime import date

from badgewatch.services.date_range import DateRange, DateRangeTracker, roll_date_range

MAY_1 = date(2024, 5, 1)
MAY_2 = date(2024, 5, 2)


class TestRollDateRange:
    def test_single_day_range_moves_to_today(self):
        rolled = roll_date_range(DateRange(MAY_1, MAY_1), MAY_2)
        assert rolled == DateRange(MAY_2, MAY_2)

    def test_current_range_is_left_alone(self):
        assert roll_date_range(DateRange(MAY_2, MAY_2), MAY_2) is None

    def test_login_logs_keep_yesterday(self):
        rolled = roll_date_range(DateRange(date(2024, 4, 30), MAY_1), MAY_2, include_previous_day=True)
        assert rolled == DateRange(MAY_1, MAY_2)

    def test_picked_historical_range_is_left_alone(self):
        picked = DateRange(date(2024, 4, 1), date(2024, 4, 30))
        assert roll_date_range(picked, MAY_2) is None
        assert roll_date_range(picked, MAY_2, include_previous_day=True) is None


class TestDateRangeTracker:
    def test_track_starts_on_today(self):
        tracker = DateRangeTracker()

        assert tracker.track("sales_feed", today=MAY_1) == DateRange(MAY_1, MAY_1)
        assert tracker.track("login_feed", include_previous_day=True, today=MAY_1) == DateRange(
            date(2024, 4, 30), MAY_1
        )

    def test_roll_reports_changed_feeds(self):
        tracker = DateRangeTracker()
        tracker.track("sales_feed", today=MAY_1)
        tracker.track("login_feed", include_previous_day=True, today=MAY_1)
        tracker.track("cashier_feed", today=MAY_1)
        tracker.set("cashier_feed", DateRange(date(2024, 4, 1), date(2024, 4, 30)))

        changed = tracker.roll(MAY_2)

        assert sorted(changed) == ["login_feed", "sales_feed"]
        assert tracker.get("sales_feed") == DateRange(MAY_2, MAY_2)
        assert tracker.get("login_feed") == DateRange(MAY_1, MAY_2)
        assert tracker.get("cashier_feed") == DateRange(date(2024, 4, 1), date(2024, 4, 30))
        assert tracker.roll(MAY_2) == []

    def test_as_params(self):
        assert DateRange(MAY_1, MAY_2).as_params() == {"start_date": "2024-05-01", "end_date": "2024-05-02"}
