"""Identifier generation helpers."""
import secrets

DISPLAY_ID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DISPLAY_ID_LENGTH = 6


def generate_display_id(length: int = DISPLAY_ID_LENGTH) -> str:
    """Short human-facing reference shown next to contacts and companies."""
    return ''.join(secrets.choice(DISPLAY_ID_ALPHABET) for _ in range(length))
