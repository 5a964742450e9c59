"""Internal constants shared across the library."""

USER_AGENT = "inventrack-python"

PRODUCTS_PATH = "/products"
SUPPLIERS_PATH = "/suppliers"
PROFILES_PATH = "/profiles"
STORAGE_PATH = "/storage"
LOGIN_PATH = "/user/login"
SIGNUP_PATH = "/user/signup"
LOGOUT_PATH = "/user/logout"
VALIDATE_TOKEN_PATH = "/user/validate-token"

PRODUCT_STORAGE_KEY = "product-storage"
SUPPLIER_STORAGE_KEY = "supplier-storage"
PROFILE_STORAGE_KEY = "profile-storage"

# Body fields the API uses for a human-readable error message, in priority order.
ERROR_MESSAGE_FIELDS: tuple[str, ...] = ("error", "message", "detail")

NO_CHANGES_MESSAGE = "No changes"
