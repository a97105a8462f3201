# summarize_app_sales.py
# Total the fetched transactions overall and per app

import pandas as pd

from app_models import SalesSummary, AppSalesSummary

APP_TOTALS_COLUMNS = ["id", "app_name", "count", "total_paid"]


def group_by_app(transactions):
    """
    Group transactions by app id in a single pass.

    Buckets keep the order in which each app id first appears. The app name
    recorded for a bucket is the one seen on that first appearance.
    """
    by_app = {}
    for transaction in transactions:
        amount = transaction.parsed_amount()
        app = by_app.get(transaction.app_id)
        if app is None:
            app = AppSalesSummary(id=transaction.app_id, app_name=transaction.app_name)
            by_app[transaction.app_id] = app
        app.add(transaction, amount)
    return list(by_app.values())


def summarize(transactions):
    """Return (SalesSummary, [AppSalesSummary, ...]) for the given transactions"""
    transactions = list(transactions)
    summary = SalesSummary(
        count=len(transactions),
        total_paid=sum((t.parsed_amount() for t in transactions), 0.0),
        data=transactions,
    )
    return summary, group_by_app(transactions)


def app_totals_frame(apps):
    """One row per app with its count and total, in bucket order"""
    rows = [{col: getattr(app, col) for col in APP_TOTALS_COLUMNS} for app in apps]
    return pd.DataFrame(rows, columns=APP_TOTALS_COLUMNS)
