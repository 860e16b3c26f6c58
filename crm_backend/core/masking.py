"""
PII masking for callers without the contacts.view_unmasked capability.
"""
from typing import Optional


def mask_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return email
    parts = email.split("@")
    if len(parts) != 2:
        return "***"
    return f"{parts[0][:2]}***@{parts[1]}"


def mask_phone(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return phone
    value = str(phone)
    return f"{value[:2]}******{value[-2:]}"


def mask_contact_fields(data: dict) -> dict:
    """Return a copy of a contact payload with email/phone/mobile masked."""
    masked = dict(data)
    masked["email"] = mask_email(data.get("email"))
    masked["phone"] = mask_phone(data.get("phone"))
    masked["mobile"] = mask_phone(data.get("mobile"))
    return masked
