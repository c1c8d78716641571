from datetime import date, datetime, timedelta

from polar_toolkit.services.dates import recent_dates


def test_thirty_days_newest_first():
    today = date(2026, 10, 18)
    dates = recent_dates(today=today)

    assert len(dates) == 30
    assert dates[0] == "2026-10-18"
    assert dates[-1] == (today - timedelta(days=29)).isoformat()
    assert dates == sorted(dates, reverse=True)


def test_valid_and_unique():
    dates = recent_dates(today=date(2024, 3, 10))

    assert len(set(dates)) == len(dates)
    for date_key in dates:
        assert datetime.strptime(date_key, "%Y-%m-%d").date().isoformat() == date_key


def test_crosses_month_and_leap_day():
    dates = recent_dates(today=date(2024, 3, 1))

    assert dates[1] == "2024-02-29"
    assert "2024-02-01" in dates


def test_defaults_to_today():
    assert recent_dates()[0] == date.today().isoformat()
