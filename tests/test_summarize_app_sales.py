"""
Tests for per-app grouping and totals.
"""

from collections import Counter

import pytest

from app_models import AmountParseError, AppTransaction
from summarize_app_sales import app_totals_frame, group_by_app, summarize
from conftest import make_edge


def txn(txn_id, app_id, app_name, amount, cursor=None):
    return AppTransaction.from_edge(make_edge(cursor or f"cur-{txn_id}", txn_id, app_id, app_name, amount))


@pytest.fixture
def example_transactions():
    return [
        txn("A1", "app-1", "App1", "10.50"),
        txn("A2", "app-2", "App2", "5.00"),
        txn("A3", "app-1", "App1", "2.25"),
    ]


def test_groups_example_by_app(example_transactions):
    summary, apps = summarize(example_transactions)

    assert summary.count == 3
    assert summary.total_paid == pytest.approx(17.75)

    assert [a.app_name for a in apps] == ["App1", "App2"]
    app1, app2 = apps
    assert app1.id == "app-1"
    assert app1.count == 2
    assert app1.total_paid == pytest.approx(12.75)
    assert [t.id for t in app1.data] == ["A1", "A3"]
    assert app2.count == 1
    assert app2.total_paid == pytest.approx(5.00)
    assert [t.id for t in app2.data] == ["A2"]


def test_empty_input():
    summary, apps = summarize([])

    assert summary.count == 0
    assert summary.total_paid == 0
    assert summary.data == []
    assert apps == []


def test_summary_keeps_order_and_counts(example_transactions):
    summary, _ = summarize(example_transactions)

    assert summary.data == example_transactions
    assert summary.count == len(summary.data)
    assert summary.total_paid == pytest.approx(sum(float(t.amount) for t in summary.data))


def test_buckets_partition_all_transactions():
    transactions = [
        txn(f"T{i}", f"app-{i % 4}", f"App{i % 4}", f"{i}.{i % 10}0") for i in range(1, 40)
    ]

    summary, apps = summarize(transactions)

    bucketed = [t for app in apps for t in app.data]
    assert Counter(bucketed) == Counter(summary.data)
    assert len(bucketed) == len(summary.data)
    assert sum(app.count for app in apps) == summary.count
    assert sum(app.total_paid for app in apps) == pytest.approx(summary.total_paid)
    for app in apps:
        assert app.count == len(app.data)
        assert all(t.app_id == app.id for t in app.data)


def test_bucket_order_is_first_appearance():
    transactions = [
        txn("T1", "app-b", "B", "1"),
        txn("T2", "app-a", "A", "1"),
        txn("T3", "app-b", "B", "1"),
        txn("T4", "app-c", "C", "1"),
    ]

    assert [a.id for a in group_by_app(transactions)] == ["app-b", "app-a", "app-c"]


def test_summarize_is_idempotent(example_transactions):
    first = summarize(example_transactions)
    second = summarize(example_transactions)

    assert first == second


def test_first_seen_app_name_wins():
    transactions = [
        txn("T1", "app-1", "Original Name", "1.00"),
        txn("T2", "app-1", "Renamed App", "2.00"),
    ]

    apps = group_by_app(transactions)

    assert len(apps) == 1
    assert apps[0].app_name == "Original Name"
    assert apps[0].count == 2


def test_same_name_different_ids_stay_separate():
    transactions = [
        txn("T1", "app-1", "Same", "1.00"),
        txn("T2", "app-2", "Same", "2.00"),
    ]

    assert [a.id for a in group_by_app(transactions)] == ["app-1", "app-2"]


def test_non_numeric_amount_aborts():
    transactions = [txn("T1", "app-1", "App1", "1.00"), txn("T2", "app-1", "App1", "n/a")]

    with pytest.raises(AmountParseError, match="T2"):
        summarize(transactions)


def test_app_totals_frame(example_transactions):
    _, apps = summarize(example_transactions)

    df = app_totals_frame(apps)

    assert list(df.columns) == ["id", "app_name", "count", "total_paid"]
    assert df["app_name"].tolist() == ["App1", "App2"]
    assert df["count"].tolist() == [2, 1]
    assert df["total_paid"].sum() == pytest.approx(17.75)


def test_app_totals_frame_empty():
    df = app_totals_frame([])

    assert df.empty
    assert list(df.columns) == ["id", "app_name", "count", "total_paid"]
