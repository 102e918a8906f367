import base64
import io
import secrets

import pyotp
import qrcode
from qrcode.image.svg import SvgPathImage
from werkzeug.security import generate_password_hash, check_password_hash

BACKUP_CODE_LENGTH = 8


def generate_secret():
    return pyotp.random_base32(length=32)


def provisioning_uri(secret, email, issuer):
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=issuer)


def qr_code_data_uri(uri):
    # SVG output keeps Pillow out of the dependency set
    img = qrcode.make(uri, image_factory=SvgPathImage)
    buf = io.BytesIO()
    img.save(buf)
    return "data:image/svg+xml;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def verify_totp(secret, token, valid_window=1):
    token = (token or "").strip()
    if not secret or len(token) != 6 or not token.isdigit():
        return False
    return pyotp.TOTP(secret).verify(token, valid_window=valid_window)


def generate_backup_codes(count=10):
    return [secrets.token_hex(BACKUP_CODE_LENGTH // 2).upper() for _ in range(count)]


def hash_backup_codes(codes):
    return [generate_password_hash(c) for c in codes]


def consume_backup_code(code, hashed_codes):
    """Return the remaining hashes if ``code`` matches one, else None."""
    code = (code or "").strip().upper()
    if len(code) != BACKUP_CODE_LENGTH:
        return None
    for i, h in enumerate(hashed_codes or []):
        if check_password_hash(h, code):
            return hashed_codes[:i] + hashed_codes[i + 1:]
    return None
