import csv
import io
from datetime import date

import pytest

from pn_filer.document_builder import FormatVersion, build_documents, parse_order_sheet, to_csv
from pn_filer.domain import CatalogEntry, OrderLine, OrderRequest, ShipmentRecord, ShippingAddress


class TestToCsv:
    def test_every_field_quoted(self):
        out = to_csv([{"Name": "Jane", "Qty": "2"}])
        assert out == '"Name","Qty"\n"Jane","2"'

    def test_internal_quotes_doubled(self):
        out = to_csv([{"Description": 'Dried "Medjool" dates'}])
        assert out.splitlines()[1] == '"Dried ""Medjool"" dates"'

    def test_empty_rows(self):
        assert to_csv([]) == ""

    def test_reparse_recovers_built_rows(self):
        address = ShippingAddress(
            first_name='Jean "JJ"', last_name="O'Neil", address1="1 Rue, Suite 2",
            city="Montréal", province="QC", zip="H2X 1Y4", country_code="CA",
        )
        rows = build_documents(
            [OrderRequest("#1001", "TRK1", (OrderLine("p1", 3),))],
            {"#1001": ShipmentRecord("gid://shopify/Order/1", "#1001", address)},
            {"p1": CatalogEntry("p1", "16AGT99")},
            {"csv_description": 'Tea, "green"'},
            date(2026, 3, 7),
            FormatVersion.FLAT_FILE,
        ).payloads

        parsed = list(csv.DictReader(io.StringIO(to_csv(rows))))
        assert parsed == rows


class TestParseOrderSheet:
    def test_reads_orders(self):
        text = "OrderName,Tracking\n#1001,TRK1\n#1002,TRK2\n"
        orders = parse_order_sheet(text, "product-1", quantity=3)

        assert [(o.order_name, o.tracking_number) for o in orders] == [("#1001", "TRK1"), ("#1002", "TRK2")]
        assert orders[0].line_items == (OrderLine("product-1", 3),)

    def test_skips_incomplete_rows_and_strips_bom(self):
        text = "\ufeffOrderName,Tracking,Notes\n #1001 , TRK1 ,x\n#1002,,y\n,TRK3,z\n"
        orders = parse_order_sheet(text, "product-1")

        assert [(o.order_name, o.tracking_number) for o in orders] == [("#1001", "TRK1")]
        assert orders[0].line_items[0].quantity == 1

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="OrderName and Tracking"):
            parse_order_sheet("Order,Tracking\n#1001,TRK1\n", "product-1")
