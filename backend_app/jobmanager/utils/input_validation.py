# Input validation helpers shared by the domain services
import re
from typing import Any, Dict, List, Optional
import html
import logging

logger = logging.getLogger(__name__)


class InputValidator:
    """Centralized input validation and normalisation"""

    EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
    POSTCODE_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9 \-]{1,9}$')
    PHONE_PATTERN = re.compile(r'^\+?[0-9 ()\-]{6,20}$')

    DANGEROUS_PATTERNS = [
        r'<script[^>]*>.*?</script>',
        r'javascript:',
        r'vbscript:',
        r'on\w+\s*=',
        r'<\s*iframe',
        r'<\s*object',
        r'<\s*embed',
    ]

    @classmethod
    def normalize_email(cls, email: Optional[str]) -> str:
        return (email or "").strip().lower()

    @classmethod
    def validate_email(cls, email: str) -> bool:
        """Validate email format"""
        if not email or len(email) > 254:  # RFC 5321 limit
            return False
        return bool(cls.EMAIL_PATTERN.match(email))

    @classmethod
    def validate_phone(cls, phone: str) -> bool:
        if not phone:
            return True
        return bool(cls.PHONE_PATTERN.match(phone))

    @classmethod
    def validate_postcode(cls, postcode: str) -> bool:
        if not postcode:
            return True
        return bool(cls.POSTCODE_PATTERN.match(postcode.strip()))

    @classmethod
    def validate_string_length(cls, text: Any, min_length: int = 0, max_length: int = 1000) -> bool:
        """Validate string length"""
        if not isinstance(text, str):
            return False
        return min_length <= len(text.strip()) <= max_length

    @classmethod
    def contains_dangerous_patterns(cls, text: str) -> bool:
        """Check if text contains markup or script injection"""
        if not text:
            return False
        for pattern in cls.DANGEROUS_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE):
                logger.warning("Dangerous pattern detected: %s", pattern)
                return True
        return False

    @classmethod
    def sanitize_text(cls, text: Optional[str]) -> str:
        if not text:
            return ""
        return html.escape(text.strip())

    @classmethod
    def find_unsafe_fields(cls, data: Dict[str, Any], fields: List[str]) -> List[str]:
        """Return the names of string fields that contain injection patterns"""
        return [
            name for name in fields
            if isinstance(data.get(name), str) and cls.contains_dangerous_patterns(data[name])
        ]
