"""Input sanitisation helpers with XSS protection"""

import bleach

# Allowed HTML tags for user input
ALLOWED_TAGS = ['b', 'i', 'u', 'em', 'strong', 'p', 'br']


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def sanitize_html(value: str) -> str:
        """Remove dangerous HTML/JavaScript"""
        if not value:
            return value
        return bleach.clean(value, tags=ALLOWED_TAGS, strip=True)


def clean_user_text(value: str) -> str:
    """Strip disallowed markup and surrounding whitespace from free text"""
    return SafeStringMixin.sanitize_html(value or "").strip()


# Utility validation functions
def validate_pagination(page: int, limit: int) -> tuple[int, int]:
    """Validate pagination parameters"""
    page = max(1, min(page, 10000))
    limit = max(1, min(limit, 100))
    return page, limit
