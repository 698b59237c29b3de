"""Sample report payloads built with Faker, for demos and smoke tests."""

from datetime import date, timedelta
from typing import Any, Dict, List

import numpy as np
from faker import Faker


ORDER_STATUSES = ["Paid", "Pending", "Shipped", "Cancelled"]
PRODUCT_CATEGORIES = ["Hardware", "Software", "Services", "Supplies"]


def generate_order_items(rng: np.random.Generator, fake: Faker, num_items: int) -> List[Dict[str, Any]]:
    """Generate line items for one order."""
    items = []
    for i in range(num_items):
        quantity = int(rng.integers(1, 20))
        unit_price = round(float(rng.uniform(5, 800)), 2)
        items.append({
            "sku": f"SKU-{rng.integers(10000, 99999)}",
            "product": fake.catch_phrase(),
            "category": str(rng.choice(PRODUCT_CATEGORIES)),
            "quantity": quantity,
            "unitPrice": unit_price,
            "total": round(quantity * unit_price, 2),
        })
    return items


def generate_orders(
    rng: np.random.Generator,
    fake: Faker,
    num_orders: int = 5,
    period_start: date = date(2024, 1, 1),
) -> List[Dict[str, Any]]:
    """Generate order rows, each carrying its own list of items."""
    orders = []
    for i in range(num_orders):
        items = generate_order_items(rng, fake, int(rng.integers(1, 5)))
        order_date = period_start + timedelta(days=int(rng.integers(0, 60)))
        subtotal = sum(item["total"] for item in items)
        discount = round(float(rng.uniform(0, 15)), 2)

        orders.append({
            "orderId": f"ORD-{i + 1:04d}",
            "customer": fake.company(),
            "date": order_date.isoformat(),
            "status": str(rng.choice(ORDER_STATUSES)),
            "discount": discount,
            "amount": round(subtotal * (1 - discount / 100), 2),
            "items": items,
        })
    return orders


def generate_summary_rows(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Aggregate order amounts per status."""
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for order in orders:
        status = order["status"]
        totals[status] = totals.get(status, 0.0) + order["amount"]
        counts[status] = counts.get(status, 0) + 1
    return [
        {"status": status, "orders": counts[status], "amount": round(totals[status], 2)}
        for status in sorted(totals)
    ]


def build_sample_report(seed: int = 42, num_orders: int = 5) -> Dict[str, Any]:
    """
    Build a complete report payload in its JSON form.

    The report has a header grid, an orders table with nested items, text,
    chart and image sections, a two-column section group and footer data.
    Output is deterministic for a given seed.
    """
    rng = np.random.default_rng(seed)
    fake = Faker()
    fake.seed_instance(seed)

    orders = generate_orders(rng, fake, num_orders)
    summary = generate_summary_rows(orders)
    top_customers = sorted(orders, key=lambda o: o["amount"], reverse=True)[:3]

    orders_table = {
        "type": "table",
        "title": "Orders",
        "useAlternateRowColor": True,
        "columns": {
            "orderId": "Order",
            "customer": "Customer",
            "date": "Date",
            "status": "Status",
            "discount": "Discount",
            "amount": "Amount",
        },
        "columnStyles": {
            "orderId": {"width": 12, "bold": True},
            "customer": {"width": 33},
            "date": {"width": 13, "format": "date", "alignment": "center"},
            "status": {"width": 12, "alignment": "center"},
            "discount": {"width": 12, "format": "percentage", "alignment": "right"},
            "amount": {"width": 18, "format": "currency", "alignment": "right"},
        },
        "data": orders,
        "nestedSections": [
            {
                "sourceField": "items",
                "title": "Items",
                "showHeaders": True,
                "useAlternateRowColor": True,
                "columns": {
                    "sku": "SKU",
                    "product": "Product",
                    "category": "Category",
                    "quantity": "Qty",
                    "unitPrice": "Unit Price",
                    "total": "Total",
                },
                "columnStyles": {
                    "sku": {"width": 14},
                    "product": {"width": 36},
                    "quantity": {"width": 8, "format": "integer", "alignment": "right"},
                    "unitPrice": {"width": 14, "format": "currency", "alignment": "right"},
                    "total": {"width": 14, "format": "currency", "alignment": "right"},
                },
            }
        ],
    }

    summary_table = {
        "type": "table",
        "title": "By Status",
        "columns": {"status": "Status", "orders": "Orders", "amount": "Amount"},
        "columnStyles": {
            "orders": {"format": "integer", "alignment": "right"},
            "amount": {"format": "currency", "alignment": "right"},
        },
        "data": summary,
    }

    customers_table = {
        "type": "table",
        "title": "Top Customers",
        "columns": {"customer": "Customer", "amount": "Amount"},
        "columnStyles": {
            "customer": {"width": 60},
            "amount": {"width": 40, "format": "currency", "alignment": "right"},
        },
        "data": [{"customer": o["customer"], "amount": o["amount"]} for o in top_customers],
    }

    return {
        "reportType": "orders",
        "title": "Order Report",
        "headerConfig": {
            "columns": 3,
            "useBackground": True,
            "paddingTop": 3,
            "paddingBottom": 3,
            "paddingLeft": 4,
            "data": {
                "Company": fake.company(),
                "Prepared by": fake.name(),
                "City": fake.city(),
                "Period": "01/2024 - 02/2024",
                "Orders": str(len(orders)),
            },
        },
        "sectionGroups": [
            {
                "groupId": "details",
                "columns": 1,
                "sections": [
                    orders_table,
                    {"type": "text", "title": "Notes", "content": fake.paragraph(nb_sentences=4)},
                    {"type": "chart", "title": "Monthly Sales"},
                ],
            },
            {
                "groupId": "summary",
                "title": "Summary",
                "columns": 2,
                "columnGap": 10,
                "marginTop": 10,
                "sections": [summary_table, customers_table, {"type": "image", "title": "Logo"}],
            },
        ],
        "footerData": {
            "Generated by": fake.name(),
            "Total amount": f"{sum(o['amount'] for o in orders):,.2f}",
        },
        "pdfSettings": {
            "pageSize": "A4",
            "orientation": "PORTRAIT",
            "marginLeft": 20,
            "marginRight": 20,
            "marginTop": 20,
            "marginBottom": 30,
        },
    }
