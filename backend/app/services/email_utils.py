"""メールアドレス関連ユーティリティ"""
from email_validator import EmailNotValidError, validate_email

# 使い捨てメールドメイン (ダイジェスト送信先としては受け付けない)
DISPOSABLE_DOMAINS = {
    "10minutemail.com", "10minutemail.net", "guerrillamail.com", "guerrillamail.org",
    "tempmail.com", "tempmail.net", "throwaway.email", "mailinator.com",
    "yopmail.com", "yopmail.fr", "trashmail.com", "fakeinbox.com",
    "temp-mail.org", "getnada.com", "maildrop.cc", "sharklasers.com",
    "dispostable.com", "discard.email", "tmpmail.org", "tmpmail.net",
}


def is_disposable_email(email: str) -> bool:
    if not email:
        return False
    domain = email.lower().rsplit("@", 1)[-1]
    return domain in DISPOSABLE_DOMAINS


def normalize_address(email: str) -> str:
    """前後空白除去 + ドメイン部のみ小文字化 (ローカル部は送信先としてそのまま保持)"""
    email = email.strip()
    if "@" not in email:
        return email
    local, domain = email.rsplit("@", 1)
    return f"{local}@{domain.lower()}"


def is_valid_address(email: str) -> bool:
    """形式チェック (DNS問い合わせはしない)"""
    if not email or not email.strip():
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
