"""
Pytest fixtures for the app sales report. Replaces requests.post with a scripted
fake so the paginator can be driven page by page without a network.
"""

import pytest

from app_sales_config import ShopifyConfig
import fetch_app_transactions


def make_edge(cursor, txn_id, app_id="gid://partners/App/1", app_name="App1", amount="10.00",
              created_at="2022-11-05T10:00:00Z", shop_name="Shop", shop_domain="shop.myshopify.com"):
    return {
        "cursor": cursor,
        "node": {
            "id": txn_id,
            "createdAt": created_at,
            "netAmount": {"amount": amount},
            "app": {"id": app_id, "name": app_name},
            "shop": {"name": shop_name, "myshopifyDomain": shop_domain},
        },
    }


def make_page(edges, has_next_page):
    return {"data": {"transactions": {"edges": edges, "pageInfo": {"hasNextPage": has_next_page}}}}


NO_JSON = object()


class FakeResponse:
    def __init__(self, payload=NO_JSON, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else repr(payload)

    def json(self):
        if self._payload is NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def config(tmp_path):
    return ShopifyConfig(
        api_url="https://partners.example.test/1/api/2023-01/graphql.json",
        access_token="test-token",
        report_timezone="UTC",
        output_dir=str(tmp_path / "output"),
        timeout=5,
    )


@pytest.fixture
def scripted_post(monkeypatch):
    """
    Install a fake requests.post that answers with the given responses in order.
    Returns the list of captured calls (dicts of url, headers, json, timeout).
    """
    calls = []

    def install(responses):
        queue = list(responses)

        def fake_post(url, headers=None, json=None, timeout=None):
            calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
            if not queue:
                raise AssertionError("Unexpected extra request")
            response = queue.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(fetch_app_transactions.requests, "post", fake_post)
        return calls

    return install
