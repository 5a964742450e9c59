"""inventrack - Async Python client and local state for the InvenTrack inventory API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("inventrack")
except PackageNotFoundError:
    __version__ = "0+local"
from inventrack.client import InventrackClient
from inventrack.config import InventrackConfig
from inventrack.diff import EditOutcome, compute_patch
from inventrack.exceptions import (
    InventrackApiError,
    InventrackAuthenticationError,
    InventrackConfigError,
    InventrackError,
    InventrackNetworkError,
    InventrackNotFoundError,
    InventrackPersistenceError,
    InventrackServerError,
    InventrackTransportError,
    InventrackValidationError,
)
from inventrack.models import (
    ApiFailure,
    AuthUser,
    ErrorKind,
    LoginRequest,
    Product,
    ProductDraft,
    Profile,
    SignupRequest,
    Supplier,
    SupplierDraft,
    TokenValidation,
)
from inventrack.state.persistence import JsonFileStorage, MemoryStorage, StorageBackend
from inventrack.state.store import LoadStatus
from inventrack.summary import InventorySummary, summarize_inventory

__all__ = [
    "__version__",
    "ApiFailure",
    "AuthUser",
    "EditOutcome",
    "ErrorKind",
    "InventorySummary",
    "InventrackApiError",
    "InventrackAuthenticationError",
    "InventrackClient",
    "InventrackConfig",
    "InventrackConfigError",
    "InventrackError",
    "InventrackNetworkError",
    "InventrackNotFoundError",
    "InventrackPersistenceError",
    "InventrackServerError",
    "InventrackTransportError",
    "InventrackValidationError",
    "JsonFileStorage",
    "LoadStatus",
    "LoginRequest",
    "MemoryStorage",
    "Product",
    "ProductDraft",
    "Profile",
    "SignupRequest",
    "StorageBackend",
    "Supplier",
    "SupplierDraft",
    "TokenValidation",
    "compute_patch",
    "summarize_inventory",
]
