"""Record and request models."""

from inventrack.models._base import IdentifiedRecord, InventrackBaseModel, RecordId
from inventrack.models.auth import AuthUser, TokenValidation
from inventrack.models.failure import ApiFailure, ErrorKind
from inventrack.models.product import Product
from inventrack.models.profile import Profile
from inventrack.models.requests import LoginRequest, ProductDraft, SignupRequest, SupplierDraft
from inventrack.models.supplier import Supplier

__all__ = [
    "ApiFailure",
    "AuthUser",
    "ErrorKind",
    "IdentifiedRecord",
    "InventrackBaseModel",
    "LoginRequest",
    "Product",
    "ProductDraft",
    "Profile",
    "RecordId",
    "SignupRequest",
    "Supplier",
    "SupplierDraft",
    "TokenValidation",
]
