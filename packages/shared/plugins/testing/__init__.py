"""Import plugin testing utilities.

- ``ImportPluginContractTest``: inherit to verify a plugin's declarations
- ``MockImportPlugin``: canned-data plugin that records search/fetch calls
- ``make_record``: convenience builder for ``ImportData``
"""

from .contracts import ImportPluginContractTest
from .mocks import MockImportPlugin, SearchCall, make_record

__all__ = [
    "ImportPluginContractTest",
    "MockImportPlugin",
    "SearchCall",
    "make_record",
]
