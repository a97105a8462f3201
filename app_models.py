# app_models.py
# Records fetched from the Partner API and the summaries built from them

from dataclasses import dataclass, field
from typing import List


class AmountParseError(ValueError):
    """Raised when a transaction amount is not numeric text"""


@dataclass(frozen=True)
class AppTransaction:
    """One APP_SUBSCRIPTION_SALE transaction, as returned in a GraphQL edge"""
    cursor: str
    id: str
    created_at: str
    amount: str
    app_id: str
    app_name: str
    shop_name: str
    shop_domain: str

    @classmethod
    def from_edge(cls, edge):
        node = edge["node"]
        return cls(
            cursor=edge["cursor"],
            id=node["id"],
            created_at=node["createdAt"],
            amount=node["netAmount"]["amount"],
            app_id=node["app"]["id"],
            app_name=node["app"]["name"],
            shop_name=node["shop"]["name"],
            shop_domain=node["shop"]["myshopifyDomain"],
        )

    def parsed_amount(self):
        try:
            return float(self.amount)
        except (TypeError, ValueError):
            raise AmountParseError(f"Transaction {self.id} has a non-numeric amount: {self.amount!r}")

    def to_dict(self):
        return {
            "cursor": self.cursor,
            "node": {
                "id": self.id,
                "createdAt": self.created_at,
                "netAmount": {"amount": self.amount},
                "app": {"id": self.app_id, "name": self.app_name},
                "shop": {"name": self.shop_name, "myshopifyDomain": self.shop_domain},
            },
        }


@dataclass
class SalesSummary:
    """Count and total over every fetched transaction"""
    count: int = 0
    total_paid: float = 0.0
    data: List[AppTransaction] = field(default_factory=list)

    def to_dict(self):
        return {
            "count": self.count,
            "total_paid": self.total_paid,
            "data": [t.to_dict() for t in self.data],
        }


@dataclass
class AppSalesSummary:
    """Count and total for the transactions of a single app"""
    id: str
    app_name: str
    count: int = 0
    total_paid: float = 0.0
    data: List[AppTransaction] = field(default_factory=list)

    def add(self, transaction, amount):
        self.data.append(transaction)
        self.count += 1
        self.total_paid += amount

    def to_dict(self):
        return {
            "id": self.id,
            "app_name": self.app_name,
            "count": self.count,
            "total_paid": self.total_paid,
            "data": [t.to_dict() for t in self.data],
        }
