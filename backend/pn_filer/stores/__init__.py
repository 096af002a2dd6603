from pn_filer.stores.catalog import CatalogLookup
from pn_filer.stores.settings_store import DEFAULT_SETTINGS, SettingsProvider
from pn_filer.stores.submissions import SubmissionStore

__all__ = [
    "CatalogLookup",
    "DEFAULT_SETTINGS",
    "SettingsProvider",
    "SubmissionStore",
]
