import datetime as dt

from aggregations import (
    category_monthly_totals,
    category_totals,
    current_month_total,
    days_until,
    goal_progress,
    goal_summary,
    month_label,
    monthly_totals,
    previous_month,
    previous_month_total,
    recent_expenses,
    savings_rate,
    transaction_stats,
    weekly_totals,
)


def test_category_totals_sorted_descending_with_stable_ties(make_expense):
    expenses = [
        make_expense(100, "Food"),
        make_expense(300, "Travel"),
        make_expense(100, "Bills"),
    ]
    assert [(c.category, c.total) for c in category_totals(expenses)] == [
        ("Travel", 300.0),
        ("Food", 100.0),
        ("Bills", 100.0),
    ]


def test_category_totals_independent_of_order(make_expense):
    expenses = [make_expense(0.1), make_expense(0.2), make_expense(0.3)]
    assert category_totals(expenses)[0].total == 0.6
    assert category_totals(list(reversed(expenses)))[0].total == 0.6


def test_empty_inputs_give_empty_results():
    assert category_totals([]) == []
    assert monthly_totals([]) == []
    assert weekly_totals([]) == []
    assert category_monthly_totals([]) == []
    assert transaction_stats([]) == (0, 0.0, 0.0, 0.0, 0.0)


def test_monthly_totals_chronological_with_labels(make_expense):
    expenses = [
        make_expense(200, day=dt.date(2026, 10, 2)),
        make_expense(50, day=dt.date(2026, 8, 30)),
        make_expense(100, day=dt.date(2026, 10, 20)),
        make_expense(75, day=dt.date(2025, 12, 31)),
    ]
    rows = monthly_totals(expenses)
    assert [(m.key, m.label, m.total) for m in rows] == [
        ("2025-12", "Dec 25", 75.0),
        ("2026-08", "Aug 26", 50.0),
        ("2026-10", "Oct 26", 300.0),
    ]
    assert [m.key for m in monthly_totals(expenses, last_n=2)] == ["2026-08", "2026-10"]


def test_monthly_totals_independent_of_order(make_expense):
    expenses = [
        make_expense(0.1, day=dt.date(2026, 9, 3)),
        make_expense(0.2, day=dt.date(2026, 10, 1)),
        make_expense(0.3, day=dt.date(2026, 9, 28)),
        make_expense(0.4, day=dt.date(2026, 10, 15)),
    ]
    shuffled = [expenses[2], expenses[0], expenses[3], expenses[1]]
    assert monthly_totals(shuffled) == monthly_totals(expenses)
    assert monthly_totals(list(reversed(expenses))) == monthly_totals(expenses)


def test_month_label():
    assert month_label("2026-10") == "Oct 26"


def test_category_monthly_totals(make_expense):
    expenses = [
        make_expense(100, "Food", dt.date(2026, 9, 3)),
        make_expense(40, "Travel", dt.date(2026, 10, 3)),
        make_expense(60, "Food", dt.date(2026, 10, 4)),
    ]
    rows = category_monthly_totals(expenses)
    assert [r.key for r in rows] == ["2026-09", "2026-10"]
    assert dict(rows[1].categories) == {"Travel": 40.0, "Food": 60.0}


def test_weekly_totals_start_on_monday(make_expense):
    expenses = [
        make_expense(10, day=dt.date(2026, 10, 12)),
        make_expense(20, day=dt.date(2026, 10, 18)),
        make_expense(5, day=dt.date(2026, 10, 19)),
    ]
    rows = weekly_totals(expenses)
    assert [(w.week_start, w.total) for w in rows] == [
        (dt.date(2026, 10, 12), 30.0),
        (dt.date(2026, 10, 19), 5.0),
    ]
    assert rows[0].label == "12 Oct"


def test_month_totals(make_expense, now):
    expenses = [
        make_expense(100, day=dt.date(2026, 10, 1)),
        make_expense(50, day=dt.date(2026, 9, 30)),
        make_expense(25, day=dt.date(2025, 10, 10)),
    ]
    assert current_month_total(expenses, now) == 100
    assert previous_month_total(expenses, now) == 50


def test_previous_month_wraps_january(make_expense):
    assert previous_month(dt.datetime(2026, 1, 15)) == (2025, 12)
    expenses = [make_expense(80, day=dt.date(2025, 12, 31))]
    assert previous_month_total(expenses, dt.datetime(2026, 1, 15)) == 80


def test_transaction_stats(make_expense):
    stats = transaction_stats([make_expense(10), make_expense(30), make_expense(20)])
    assert stats.count == 3
    assert stats.average == 20
    assert stats.max == 30
    assert stats.min == 10
    assert stats.total == 60


def test_savings_rate():
    assert savings_rate(0, 500) is None
    assert savings_rate(1000, 800) == 20
    assert savings_rate(1000, 1500) == -50
    assert savings_rate(100, 100) == 0


def test_days_until_rounds_up(now):
    assert days_until(dt.date(2026, 10, 19), now) == 1
    assert days_until(dt.date(2026, 10, 18), now) == 0
    assert days_until(dt.date(2026, 10, 17), now) == -1
    assert days_until(dt.date(2026, 11, 17), now) == 30


def test_goal_progress_statuses(make_goal, now):
    almost = goal_progress(make_goal(1000, 800, dt.date(2026, 10, 28)), now)
    assert almost.status == "almost_there"
    assert almost.progress_pct == 80
    assert almost.days_left == 10
    assert almost.amount_left == 200
    assert almost.daily_amount_needed == 20

    assert goal_progress(make_goal(1000, 100, dt.date(2026, 12, 1)), now).status == "in_progress"
    assert goal_progress(make_goal(1000, 100, dt.date(2026, 10, 18)), now).status == "due_today"
    assert goal_progress(make_goal(1000, 100, dt.date(2026, 10, 1)), now).status == "overdue"


def test_goal_progress_clamps_overfunded_goal(make_goal, now):
    progress = goal_progress(make_goal(1000, 1200, dt.date(2026, 12, 1)), now)
    assert progress.status == "completed"
    assert progress.progress_pct == 100
    assert progress.ratio == 1.2
    assert progress.daily_amount_needed == 0
    assert progress.amount_left == -200


def test_overfunded_goal_past_deadline_is_completed(make_goal, now):
    progress = goal_progress(make_goal(1000, 1200, dt.date(2026, 10, 1)), now)
    assert progress.status == "completed"
    assert progress.ratio >= 1
    assert progress.days_left < 0
    assert progress.progress_pct == 100
    assert progress.daily_amount_needed == 0


def test_goal_summary(make_goal):
    summary = goal_summary([make_goal(1000, 1000), make_goal(3000, 500)])
    assert summary.total_target == 4000
    assert summary.total_saved == 1500
    assert summary.completed == 1
    assert summary.overall_pct == 37.5
    assert goal_summary([]).overall_pct == 0


def test_recent_expenses_newest_first(make_expense):
    expenses = [make_expense(i, day=dt.date(2026, 10, i)) for i in range(1, 8)]
    assert [e.amount for e in recent_expenses(expenses, limit=3)] == [7, 6, 5]
