"""
PII (Personally Identifiable Information) masking for log records.
"""
import re

UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.I)
PHONE_RE = re.compile(r'^[\d\s\+\-\(\)]+$')

# Contact fields of an order snapshot, in both wire and attribute spelling.
PII_FIELDS = {
    "email", "customeremail", "customer_email",
    "phone", "name", "address", "city", "postalcode", "postal_code",
    "specialinstructions", "special_instructions",
}


def mask_email(email: str) -> str:
    """Mask email address, keeping the domain."""
    if "@" not in email:
        return email
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        masked = "**"
    else:
        masked = local[:2] + "*" * (len(local) - 2)
    return f"{masked}@{domain}"


def mask_phone(phone: str) -> str:
    """Mask phone number."""
    if len(phone) <= 4:
        return "*" * len(phone)
    return phone[:2] + "*" * (len(phone) - 4) + phone[-2:]


def mask_text(value: str) -> str:
    """Mask free text, keeping the first and last characters."""
    if len(value) <= 2:
        return "**"
    return value[0] + "*" * (len(value) - 2) + value[-1]


def mask_uuid(uuid_str: str) -> str:
    """Mask UUID (show first 8 chars only)."""
    if len(uuid_str) < 8:
        return "*" * len(uuid_str)
    return uuid_str[:8] + "-****-****-****-************"


def mask_value(key: str, value: str) -> str:
    if "@" in value:
        return mask_email(value)
    if "phone" in key and PHONE_RE.match(value):
        return mask_phone(value)
    if UUID_RE.match(value):
        return mask_uuid(value)
    return mask_text(value)


def mask_pii_in_dict(data: dict) -> dict:
    """Mask PII in dictionary recursively. Order ids stay readable."""
    masked = {}
    for key, value in data.items():
        key_lower = key.lower()

        if isinstance(value, dict):
            masked[key] = mask_pii_in_dict(value)
        elif isinstance(value, list):
            masked[key] = [mask_pii_in_dict(item) if isinstance(item, dict) else item for item in value]
        elif key_lower in PII_FIELDS and isinstance(value, str):
            masked[key] = mask_value(key_lower, value)
        elif key_lower in ("user_id", "owner_id", "ownerid") and isinstance(value, str):
            masked[key] = mask_uuid(value)
        else:
            masked[key] = value

    return masked
