import re

EMAIL_RE = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
PHONE_RE = re.compile(r"\b(?:\+?1[\s-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b")
HOUSE_NUMBER_RE = re.compile(r"\b(\d{3,5})\s+([A-Za-z])")


def _mask_email(match):
    user, _, domain = match.group(0).partition("@")
    return f"{user[0]}***@***.{domain.split('.')[-1]}"


def sanitize_pii(text):
    """Mask emails, phone numbers and house numbers in free text."""
    text = EMAIL_RE.sub(_mask_email, text)
    text = PHONE_RE.sub("(***) ***-****", text)
    text = HOUSE_NUMBER_RE.sub(lambda m: "*" * len(m.group(1)) + " " + m.group(2), text)
    return text
