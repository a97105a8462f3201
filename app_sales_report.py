# app_sales_report.py
# Monthly app subscription sales report: fetch, total per app, write JSON/CSV files

import os
import json
import sys

from app_sales_config import ConfigError, load_config, month_range, previous_month
from app_models import AmountParseError
from fetch_app_transactions import FetchError, clear_cache, fetch_transactions_cached
from summarize_app_sales import app_totals_frame, summarize

TOTAL_FILENAME = "total.json"
APP_TOTALS_FILENAME = "app_totals.csv"

USAGE = "Usage: python app_sales_report.py [YEAR MONTH] [--no-cache] [--clear-cache]"


def app_filename(app_name, suffix=None):
    """File name for an app's summary, with path separators replaced"""
    safe_name = app_name.replace("/", "_").replace(os.sep, "_").strip() or "unnamed"
    if suffix:
        return f"{safe_name}_{suffix}.json"
    return f"{safe_name}.json"


def app_id_suffix(app_id):
    """Last segment of an app gid, e.g. gid://partners/App/1234 -> 1234"""
    return app_id.rstrip("/").rsplit("/", 1)[-1].replace(os.sep, "_")


def write_json(path, obj):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def write_outputs(summary, apps, output_dir):
    """Write the total file, one file per app and the per-app CSV; return the paths written"""
    os.makedirs(output_dir, exist_ok=True)
    written = []

    total_path = os.path.join(output_dir, TOTAL_FILENAME)
    write_json(total_path, summary.to_dict())
    written.append(total_path)

    # Apps sharing a display name get their id appended
    used_names = {TOTAL_FILENAME, APP_TOTALS_FILENAME}
    for app in apps:
        filename = app_filename(app.app_name)
        if filename in used_names:
            filename = app_filename(app.app_name, app_id_suffix(app.id))
        used_names.add(filename)

        path = os.path.join(output_dir, filename)
        print(f"   Writing {path}...")
        write_json(path, app.to_dict())
        written.append(path)

    csv_path = os.path.join(output_dir, APP_TOTALS_FILENAME)
    app_totals_frame(apps).to_csv(csv_path, index=False)
    written.append(csv_path)

    return written


def parse_args(argv):
    """Return (year, month, use_cache, clear) from the command line; year and month are None when omitted"""
    flags = [a for a in argv if a.startswith("--")]
    positional = [a for a in argv if not a.startswith("--")]

    unknown = set(flags) - {"--no-cache", "--clear-cache"}
    if unknown:
        raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")

    if not positional:
        year, month = None, None
    elif len(positional) == 2:
        year, month = int(positional[0]), int(positional[1])
    else:
        raise ValueError("Expected YEAR and MONTH together")

    return year, month, "--no-cache" not in flags, "--clear-cache" in flags


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    print("SHOPIFY APP SUBSCRIPTION SALES REPORT")
    print("=" * 50)

    try:
        year, month, use_cache, clear = parse_args(argv)
    except ValueError as e:
        print(f"ERROR: {e}")
        print(USAGE)
        sys.exit(1)

    if clear:
        clear_cache()
        return

    try:
        config = load_config()
        if year is None:
            year, month = previous_month(timezone_name=config.report_timezone)
        created_at_min, created_at_max = month_range(year, month, config.report_timezone)
    except (ConfigError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Report period: {created_at_min} to {created_at_max}")

    try:
        print("\nFetching transactions from Shopify GraphQL API...")
        transactions = fetch_transactions_cached(config, created_at_min, created_at_max, use_cache=use_cache)
        print(f"   Retrieved {len(transactions)} transactions total")

        print("\nTotalling transactions per app...")
        summary, apps = summarize(transactions)
    except (FetchError, AmountParseError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    output_dir = os.path.join(config.output_dir, f"{year}-{month}")
    print(f"\nWriting output files to {output_dir}...")
    write_outputs(summary, apps, output_dir)

    print(f"\nSummary Statistics:")
    print(f"Total transactions: {summary.count}")
    print(f"Total paid: ${summary.total_paid:,.2f}")
    print(f"Apps: {len(apps)}")
    for app in apps:
        print(f"   • {app.app_name}: {app.count} transactions, ${app.total_paid:,.2f}")

    print("Report complete.")


if __name__ == "__main__":
    main()
