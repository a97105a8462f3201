# fetch_app_transactions.py
# Fetch every APP_SUBSCRIPTION_SALE transaction in a date range from the Partner GraphQL API

import os
import json
import requests
from datetime import datetime
import hashlib
import pickle
import shutil
import time

from app_models import AppTransaction

PAGE_SIZE = 100  # API page-size ceiling

# Cache configuration
CACHE_DIR = "cache"
CACHE_MAX_AGE_HOURS = 24  # Cache expires after 24 hours

TRANSACTIONS_QUERY = """
query getAppTransactions($cursor: String, $createdAtMin: DateTime, $createdAtMax: DateTime) {
    transactions(types: [APP_SUBSCRIPTION_SALE], after: $cursor, first: %d, createdAtMin: $createdAtMin, createdAtMax: $createdAtMax) {
        edges {
            cursor
            node {
                id
                createdAt
                ... on AppSubscriptionSale {
                    netAmount { amount }
                    app { id name }
                    shop { name myshopifyDomain }
                }
            }
        }
        pageInfo { hasNextPage }
    }
}
""" % PAGE_SIZE


class FetchError(Exception):
    """Raised when a page cannot be fetched or does not look like a transactions page"""


class PaginationContractError(FetchError):
    """Raised when a page claims more pages exist but carries no records to continue from"""


def build_request_body(cursor, created_at_min, created_at_max):
    """Build the GraphQL request body for one page"""
    return {
        "query": TRANSACTIONS_QUERY,
        "variables": {
            "cursor": cursor,
            "createdAtMin": created_at_min,
            "createdAtMax": created_at_max,
        },
    }


def parse_page(payload):
    """Turn one response payload into (transactions, has_next_page)"""
    if not isinstance(payload, dict):
        raise FetchError(f"Unexpected response shape: {payload!r}")

    if "errors" in payload:
        raise FetchError(f"GraphQL Error: {json.dumps(payload['errors'], indent=2)}")

    try:
        page = payload["data"]["transactions"]
        has_next_page = page["pageInfo"]["hasNextPage"]
        transactions = [AppTransaction.from_edge(edge) for edge in page["edges"]]
    except (KeyError, TypeError) as e:
        raise FetchError(f"Unexpected response shape: missing {e}")

    if not isinstance(has_next_page, bool):
        raise FetchError(f"Unexpected hasNextPage value: {has_next_page!r}")

    return transactions, has_next_page


def fetch_page(config, cursor, created_at_min, created_at_max):
    """Send one page request and return (transactions, has_next_page)"""
    headers = {
        "X-Shopify-Access-Token": config.access_token,
        "Content-Type": "application/json",
    }
    body = build_request_body(cursor, created_at_min, created_at_max)

    try:
        response = requests.post(config.api_url, headers=headers, json=body, timeout=config.timeout)
    except requests.RequestException as e:
        raise FetchError(f"Request failed: {e}")

    if response.status_code != 200:
        raise FetchError(f"HTTP Error {response.status_code}: {response.text}")

    try:
        payload = response.json()
    except ValueError:
        raise FetchError(f"Response is not JSON: {response.text[:200]}")

    return parse_page(payload)


def fetch_transactions(config, created_at_min, created_at_max):
    """
    Fetch all transactions created in [created_at_min, created_at_max).

    Pages are requested one after another; the cursor for the next request is
    the cursor of the last edge of the current page. Any failure aborts the
    whole retrieval and nothing fetched so far is returned.
    """
    transactions = []
    cursor = ""
    fetch_count = 0

    while True:
        fetch_count += 1
        print(f"Fetch #{fetch_count}: Querying transactions {'from cursor ' + cursor[:20] + '...' if cursor else 'from start'}")
        page, has_next_page = fetch_page(config, cursor, created_at_min, created_at_max)

        transactions.extend(page)
        print(f"   Found {len(page)} transactions (total: {len(transactions)})")

        if not has_next_page:
            print(f"Completed fetching {len(transactions)} transactions in {fetch_count} API calls")
            return transactions

        if not page:
            raise PaginationContractError(
                f"Page {fetch_count} reports more pages but returned no transactions to continue from"
            )

        cursor = page[-1].cursor


def get_query_hash(query_string, date_range, api_url=""):
    """Generate hash for endpoint, GraphQL query and date range to detect changes"""
    combined = f"{api_url}_{query_string}_{date_range[0]}_{date_range[1]}"
    return hashlib.md5(combined.encode()).hexdigest()


def get_cache_filename(query_hash, cache_dir=CACHE_DIR):
    """Generate cache filename based on query hash"""
    return os.path.join(cache_dir, f"app_transactions_cache_{query_hash}.pkl")


def is_cache_valid(cache_file, max_age_hours=CACHE_MAX_AGE_HOURS):
    """Check if cache file exists and is not expired"""
    if not os.path.exists(cache_file):
        return False

    cache_age_hours = (time.time() - os.path.getmtime(cache_file)) / 3600

    if cache_age_hours > max_age_hours:
        print(f"Cache expired ({cache_age_hours:.1f} hours old, max {max_age_hours} hours)")
        return False

    print(f"Cache valid ({cache_age_hours:.1f} hours old)")
    return True


def load_from_cache(cache_file):
    """Load transactions from cache file, or None if it cannot be read"""
    try:
        with open(cache_file, 'rb') as f:
            cached_data = pickle.load(f)
        transactions = cached_data['transactions']
    except (OSError, pickle.UnpicklingError, EOFError, KeyError, TypeError) as e:
        print(f"Error loading cache: {e}")
        return None

    print(f"Loaded {len(transactions)} transactions from cache")
    print(f"Cache created: {cached_data.get('created_at', 'unknown')}")
    return transactions


def save_to_cache(cache_file, transactions):
    """Save transactions to cache file"""
    os.makedirs(os.path.dirname(cache_file) or ".", exist_ok=True)
    cached_data = {
        'transactions': transactions,
        'created_at': datetime.now().isoformat(),
        'count': len(transactions),
    }
    with open(cache_file, 'wb') as f:
        pickle.dump(cached_data, f)
    print(f"Saved {len(transactions)} transactions to cache")
    print(f"Cache file: {cache_file}")


def clear_cache(cache_dir=CACHE_DIR):
    """Clear all cache files"""
    if os.path.exists(cache_dir):
        shutil.rmtree(cache_dir)
        print(f"Cleared cache directory: {cache_dir}")


def fetch_transactions_cached(config, created_at_min, created_at_max, use_cache=True, cache_dir=CACHE_DIR):
    """Fetch transactions, serving a fresh cached copy when one exists"""
    if not use_cache:
        print("WARNING: Cache disabled - fetching fresh data from Shopify API...")
        return fetch_transactions(config, created_at_min, created_at_max)

    query_hash = get_query_hash(TRANSACTIONS_QUERY, (created_at_min, created_at_max), config.api_url)
    cache_file = get_cache_filename(query_hash, cache_dir)

    print(f"Checking cache for date range {created_at_min} to {created_at_max}")
    print(f"Query hash: {query_hash}")

    if is_cache_valid(cache_file):
        cached = load_from_cache(cache_file)
        if cached is not None:
            print("Using cached data - skipping API calls!")
            return cached

    print("Cache miss - fetching from Shopify API...")
    transactions = fetch_transactions(config, created_at_min, created_at_max)
    save_to_cache(cache_file, transactions)
    return transactions
