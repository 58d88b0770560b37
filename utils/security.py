from cryptography.fernet import Fernet # Symmetric encryption for stored card numbers.
from flask import current_app # To access application configuration (FERNET_KEY).


def get_fernet():
    """
    Returns a Fernet instance built from the FERNET_KEY setting.

    Raises:
        ValueError: If FERNET_KEY is not configured.
    """
    key = current_app.config.get('FERNET_KEY')
    if not key:
        current_app.logger.critical("FERNET_KEY is not configured. Card numbers cannot be stored or read back.")
        raise ValueError("FERNET_KEY not configured properly. Please set it in your application configuration.")
    if isinstance(key, str):
        key = key.encode('utf-8')
    return Fernet(key)


def normalize_card_number(card_number):
    """Strips spaces and dashes from a card number as typed by the user."""
    if card_number is None:
        return None
    return ''.join(ch for ch in str(card_number) if ch not in ' -')


def encrypt_card_number(card_number):
    """
    Encrypts a card number for storage on a payment record.

    Args:
        card_number (str or None): Card number, spaces allowed.

    Returns:
        str or None: The Fernet token as a UTF-8 string, or None when no number was given.
    """
    card_number = normalize_card_number(card_number)
    if not card_number:
        return None
    return get_fernet().encrypt(card_number.encode('utf-8')).decode('utf-8')


def decrypt_card_number(encrypted_card_number):
    """
    Decrypts a card number previously stored with encrypt_card_number().

    Raises:
        cryptography.fernet.InvalidToken: If the value was tampered with or encrypted
                                          under another key. Callers decide how to degrade.
    """
    if encrypted_card_number is None:
        return None
    return get_fernet().decrypt(encrypted_card_number.encode('utf-8')).decode('utf-8')


def card_last4(card_number):
    card_number = normalize_card_number(card_number) or ''
    return card_number[-4:] if len(card_number) >= 4 else None


def mask_card_number(card_number):
    """'4242424242424242' -> '**** **** **** 4242'."""
    last4 = card_last4(card_number)
    return f'**** **** **** {last4}' if last4 else None
