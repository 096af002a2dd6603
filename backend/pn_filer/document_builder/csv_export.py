"""Flat-file (CSV) writer for built rows and the order-sheet reader."""

import csv
import io

from pn_filer.domain import OrderLine, OrderRequest

ORDER_NAME_COLUMN = "OrderName"
TRACKING_COLUMN = "Tracking"


def to_csv(rows: list[dict]) -> str:
    """Render rows as CSV with every field quoted.

    The header is the field names of the first row. Internal quotes are
    doubled. An empty row set renders as an empty string.
    """
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([row.get(h) or "" for h in headers])
    return buffer.getvalue().rstrip("\n")


def parse_order_sheet(text: str, product_id: str, quantity: int = 1) -> list[OrderRequest]:
    """Read an uploaded order sheet into order requests.

    The sheet must have OrderName and Tracking columns. Rows missing either
    value are dropped; every order gets a single line for ``product_id``.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    columns = set(reader.fieldnames or [])
    if ORDER_NAME_COLUMN not in columns or TRACKING_COLUMN not in columns:
        raise ValueError(f"File must contain {ORDER_NAME_COLUMN} and {TRACKING_COLUMN} columns")

    orders = []
    for row in reader:
        order_name = (row.get(ORDER_NAME_COLUMN) or "").strip()
        tracking = (row.get(TRACKING_COLUMN) or "").strip()
        if not order_name or not tracking:
            continue
        orders.append(
            OrderRequest(
                order_name=order_name,
                tracking_number=tracking,
                line_items=(OrderLine(product_ref=product_id, quantity=quantity),),
            )
        )
    return orders
