from pn_filer.document_builder.builder import (
    BuildResult,
    BuiltDocument,
    SkippedItem,
    SkipReason,
    build_documents,
)
from pn_filer.document_builder.csv_export import parse_order_sheet, to_csv
from pn_filer.document_builder.formats import FormatVersion, get_format_spec

__all__ = [
    "BuildResult",
    "BuiltDocument",
    "FormatVersion",
    "SkipReason",
    "SkippedItem",
    "build_documents",
    "get_format_spec",
    "parse_order_sheet",
    "to_csv",
]
