from aprovamed.utils.email_validation import normalize_email
from aprovamed.utils.tax_id import is_valid_length, mask_tax_id, normalize_tax_id

__all__ = [
    "is_valid_length",
    "mask_tax_id",
    "normalize_email",
    "normalize_tax_id",
]
