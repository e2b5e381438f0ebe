"""HMAC-SHA256 verification of inbound webhook signatures."""

import hashlib
import hmac

from storefront.modules.billing.exceptions import ConfigurationError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_PREFIX = "sha256="


class WebhookSignatureVerifier:
    """Verifies that a webhook body was signed with the shared secret."""

    def __init__(self, secret: str | None):
        self._secret = secret

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def compute_signature(self, payload: bytes) -> str:
        """Hex HMAC-SHA256 digest of the raw payload."""
        if not self._secret:
            logger.error("Webhook secret is not configured")
            raise ConfigurationError("Webhook secret is not configured")
        return hmac.new(
            self._secret.encode("utf-8"), payload, hashlib.sha256
        ).hexdigest()

    def verify(self, payload: bytes, signature: str | None) -> bool:
        """Check ``signature`` against the digest of the byte-exact ``payload``.

        Returns False for any mismatch, including a missing or non-hex
        signature. Raises ``ConfigurationError`` only when no secret is set.
        """
        expected = self.compute_signature(payload)

        if not signature:
            return False

        candidate = signature.strip()
        if candidate.lower().startswith(SIGNATURE_PREFIX):
            candidate = candidate[len(SIGNATURE_PREFIX) :]

        try:
            received_bytes = bytes.fromhex(candidate)
            expected_bytes = bytes.fromhex(expected)
        except ValueError:
            logger.warning("Webhook signature is not valid hex")
            return False

        return hmac.compare_digest(received_bytes, expected_bytes)
