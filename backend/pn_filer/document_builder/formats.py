"""
Filing document format versions.

Each version fixes three things the builder needs to know: how the arrival
date is written, whether one document is emitted per order line or per
order, and which hard-coded defaults apply when the operator has not
configured a field. The upstream filing service changed its accepted
shapes over time, so the version is always an explicit choice.
"""

import enum
from dataclasses import dataclass, field
from datetime import date


class FormatVersion(str, enum.Enum):
    FLAT_FILE = "csv"
    ABI_DOCUMENT = "abi"
    FDA_PN = "fda-pn"


class Cardinality(str, enum.Enum):
    PER_LINE = "per_line"
    PER_ORDER = "per_order"


# Hard-coded fallbacks shared by the flat-file template and the ABI document
_FLAT_DEFAULTS = {
    "entry_type": "11",
    "reference_qualifier": "EXB",
    "mode_of_transport": "50",
    "no_tracking_number": "N",
    "bill_type": "T",
    "time_of_arrival": "11:30",
    "port_of_arrival": "4701",
    "carrier_name": "POST",
}

_FDA_PN_DEFAULTS = {
    "entry_type": "86",
    "reference_qualifier": "AWB",
    "mode_of_transport": "40",
    "no_tracking_number": "N",
    "bill_type": "M",
    "time_of_arrival": "11:30",
    "port_of_arrival": "2721",
    "carrier_name": "POST",
}


@dataclass(frozen=True)
class FormatSpec:
    version: FormatVersion
    date_format: str
    cardinality: Cardinality
    submittable: bool
    defaults: dict[str, str] = field(default_factory=dict)

    def format_date(self, value: date) -> str:
        return value.strftime(self.date_format)

    def default(self, name: str) -> str:
        return self.defaults.get(name, "")


FORMAT_SPECS: dict[FormatVersion, FormatSpec] = {
    FormatVersion.FLAT_FILE: FormatSpec(
        version=FormatVersion.FLAT_FILE,
        date_format="%m/%d/%Y",
        cardinality=Cardinality.PER_LINE,
        submittable=False,
        defaults=_FLAT_DEFAULTS,
    ),
    FormatVersion.ABI_DOCUMENT: FormatSpec(
        version=FormatVersion.ABI_DOCUMENT,
        date_format="%Y-%m-%d",
        cardinality=Cardinality.PER_ORDER,
        submittable=True,
        defaults=_FLAT_DEFAULTS,
    ),
    FormatVersion.FDA_PN: FormatSpec(
        version=FormatVersion.FDA_PN,
        date_format="%Y%m%d",
        cardinality=Cardinality.PER_ORDER,
        submittable=True,
        defaults=_FDA_PN_DEFAULTS,
    ),
}


def get_format_spec(version: FormatVersion | str) -> FormatSpec:
    return FORMAT_SPECS[FormatVersion(version)]
