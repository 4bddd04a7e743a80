"""
Input sanitization for the OTP and file flows.

Prevents:
- Null bytes and control characters in single-line fields
- Path traversal in client-supplied filenames
- Malformed email addresses and OTP codes reaching the stores
"""
import re

from email_validator import EmailNotValidError, validate_email

from otpvault.core.errors import ValidationError

DEFAULT_MIME_TYPE = 'application/octet-stream'


class InputSanitizer:
    """Validates and normalizes user input. Raises ``ValidationError`` (also a ``ValueError``)."""

    CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x1f\x7f]')
    OTP_CODE_PATTERN = re.compile(r'\A[0-9]{6}\Z')
    MIME_PATTERN = re.compile(r'\A[a-z0-9][a-z0-9!#$&^_.+\-]*/[a-z0-9][a-z0-9!#$&^_.+\-]*\Z')

    @staticmethod
    def sanitize_string(value: str, max_length: int | None = None) -> str:
        if not isinstance(value, str):
            raise ValidationError("Input must be string")

        if InputSanitizer.CONTROL_CHAR_PATTERN.search(value):
            raise ValidationError("Control characters not allowed")

        if max_length and len(value) > max_length:
            raise ValidationError(f"Input exceeds max length of {max_length}")

        return value

    @staticmethod
    def normalize_email(value: str) -> str:
        """Trim, lower-case and syntax-check an address (no DNS lookups)."""
        sanitized = InputSanitizer.sanitize_string(value, max_length=255).strip().lower()
        try:
            info = validate_email(sanitized, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError("Invalid email format") from e
        return info.normalized.lower()

    @staticmethod
    def validate_otp_code(value: str) -> str:
        if not isinstance(value, str):
            raise ValidationError("Code must be a string")
        code = value.strip()
        if not InputSanitizer.OTP_CODE_PATTERN.match(code):
            raise ValidationError("Code must be exactly 6 digits")
        return code

    @staticmethod
    def sanitize_filename(filename: str | None) -> str:
        """Keep only the basename; strip characters unsafe in a Content-Disposition header."""
        if not filename:
            return 'unnamed'

        # Remove path separators and traversal attempts
        filename = filename.replace('\\', '/').split('/')[-1]
        filename = InputSanitizer.CONTROL_CHAR_PATTERN.sub('', filename)
        filename = re.sub(r'[^\w.\-() ]', '', filename)

        # Remove multiple consecutive spaces/dots
        filename = re.sub(r'[ ]{2,}', ' ', filename)
        filename = re.sub(r'[.]{2,}', '.', filename).strip(' .')

        if not filename:
            return 'unnamed'
        if len(filename) > 255:
            stem, dot, ext = filename.rpartition('.')
            if dot and len(ext) <= 16:
                filename = stem[:254 - len(ext)] + '.' + ext
            else:
                filename = filename[:255]
        return filename

    @staticmethod
    def sanitize_mime_type(mime_type: str | None) -> str:
        if not mime_type:
            return DEFAULT_MIME_TYPE
        base_type = mime_type.split(';')[0].strip().lower()
        if not InputSanitizer.MIME_PATTERN.match(base_type) or len(base_type) > 127:
            return DEFAULT_MIME_TYPE
        return base_type
