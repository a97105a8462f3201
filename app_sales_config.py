# app_sales_config.py
# Environment settings and reporting period helpers for the app sales report

import os
from collections import namedtuple
from datetime import datetime
from dotenv import load_dotenv
import pytz

DEFAULT_API_VERSION = "2023-01"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_TIMEOUT = 30

PARTNER_URL_TEMPLATE = "https://partners.shopify.com/{partner_id}/api/{api_version}/graphql.json"

ShopifyConfig = namedtuple(
    "ShopifyConfig",
    ["api_url", "access_token", "report_timezone", "output_dir", "timeout"],
)


class ConfigError(Exception):
    """Raised when a required setting is missing or invalid"""


def load_config():
    """Read settings from the environment (and .env) into a ShopifyConfig"""
    load_dotenv()

    access_token = os.getenv("SHOPIFY_TOKEN")
    if not access_token:
        raise ConfigError("SHOPIFY_TOKEN is not set")

    api_url = os.getenv("SHOPIFY_API_URL")
    if not api_url:
        partner_id = os.getenv("SHOPIFY_PARTNER_ID")
        if not partner_id:
            raise ConfigError("Set SHOPIFY_API_URL or SHOPIFY_PARTNER_ID")
        api_version = os.getenv("SHOPIFY_API_VERSION") or DEFAULT_API_VERSION
        api_url = PARTNER_URL_TEMPLATE.format(partner_id=partner_id, api_version=api_version)

    report_timezone = os.getenv("REPORT_TIMEZONE") or DEFAULT_TIMEZONE
    if report_timezone not in pytz.all_timezones_set:
        raise ConfigError(f"Unknown REPORT_TIMEZONE: {report_timezone}")

    timeout = os.getenv("REQUEST_TIMEOUT") or DEFAULT_TIMEOUT
    try:
        timeout = float(timeout)
    except ValueError:
        raise ConfigError(f"REQUEST_TIMEOUT must be a number of seconds, got {timeout!r}")

    return ShopifyConfig(
        api_url=api_url,
        access_token=access_token,
        report_timezone=report_timezone,
        output_dir=os.getenv("OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
        timeout=timeout,
    )


def month_range(year, month, timezone_name=DEFAULT_TIMEZONE):
    """
    Return (created_at_min, created_at_max) for one reporting month.

    The range is [first of month, first of next month) in the given timezone,
    formatted as ISO 8601 with an explicit offset.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    tz = pytz.timezone(timezone_name)
    if month == 12:
        next_year, next_month = year + 1, 1
    else:
        next_year, next_month = year, month + 1

    start = tz.localize(datetime(year, month, 1))
    end = tz.localize(datetime(next_year, next_month, 1))
    return start.isoformat(), end.isoformat()


def previous_month(today=None, timezone_name=DEFAULT_TIMEZONE):
    """Return (year, month) of the calendar month before today in the given timezone"""
    today = today or datetime.now(pytz.timezone(timezone_name))
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1
