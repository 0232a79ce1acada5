from prometheus_client import Counter, Gauge

notifications_total = Counter(
    "photo_ledger_payment_notifications_total",
    "Total payment notifications processed",
    ["status"],
)

orders_total = Counter(
    "photo_ledger_orders_total", "Order payment status transitions", ["status"]
)

line_items_realized_total = Counter(
    "photo_ledger_line_items_realized_total",
    "Sale line items whose commission split was written",
)

withdrawals_total = Counter(
    "photo_ledger_withdrawals_total", "Withdrawal state transitions", ["status"]
)

reserved_funds_total = Gauge(
    "photo_ledger_reserved_funds_total",
    "Funds held by in-flight withdrawals across all photographers",
)

ledger_entries_total = Counter(
    "photo_ledger_ledger_entries_total",
    "Total reservation journal entries created",
    ["entry_type"],
)
