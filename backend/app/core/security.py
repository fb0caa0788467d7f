"""配信停止トークン: AES-256-GCM で user_id / 言語コード / 発行時刻を暗号化"""
import os
import base64
import time
from typing import Optional
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from app.core.config import settings

ALL_LANGUAGES = "all"


def _get_key() -> bytes:
    """AESキーをバイト列で取得"""
    key_hex = settings.AES_KEY
    if not key_hex:
        raise ValueError("AES_KEY が設定されていません")
    return bytes.fromhex(key_hex)


def encrypt(plaintext: str) -> str:
    """AES-256-GCM暗号化 → URLセーフbase64文字列"""
    aesgcm = AESGCM(_get_key())
    nonce = os.urandom(12)
    ciphertext = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    # nonce + ciphertext を結合してbase64 (メールのリンクに載せるためURLセーフ)
    return base64.urlsafe_b64encode(nonce + ciphertext).decode("utf-8")


def decrypt(encrypted: str) -> str:
    """URLセーフbase64文字列 → AES-256-GCM復号"""
    aesgcm = AESGCM(_get_key())
    data = base64.urlsafe_b64decode(encrypted.encode("utf-8"))
    nonce = data[:12]
    ciphertext = data[12:]
    plaintext = aesgcm.decrypt(nonce, ciphertext, None)
    return plaintext.decode("utf-8")


def generate_unsubscribe_token(
    user_id: str,
    language_code: str = ALL_LANGUAGES,
    issued_at: Optional[float] = None,
) -> str:
    """配信停止トークン生成"""
    issued = int(issued_at if issued_at is not None else time.time())
    return encrypt(f"{user_id}:{language_code}:{issued}")


def validate_unsubscribe_token(
    token: str,
    now: Optional[float] = None,
) -> Optional[tuple[str, str]]:
    """
    配信停止トークン検証。
    Returns: (user_id, language_code)、無効・期限切れならNone
    """
    if not token:
        return None
    try:
        user_id, language_code, issued = decrypt(token).rsplit(":", 2)
        issued_at = int(issued)
    except (InvalidTag, ValueError, UnicodeDecodeError):
        return None

    ttl_seconds = settings.UNSUBSCRIBE_TOKEN_TTL_DAYS * 24 * 60 * 60
    current = now if now is not None else time.time()
    if current - issued_at > ttl_seconds:
        return None
    return user_id, language_code
