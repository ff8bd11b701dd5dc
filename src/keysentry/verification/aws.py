"""AWS access key "verifier".

An Access Key ID alone cannot be verified: STS GetCallerIdentity needs the
matching Secret Access Key as well. This verifier makes no network call and
reports that limitation instead of guessing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from keysentry.core.identifier import Provider
from keysentry.verification.base import KeyVerifier, VerificationResult

if TYPE_CHECKING:
    from keysentry.core.secure_buffer import SecretBuffer


class AwsAccessKeyVerifier(KeyVerifier):
    provider = Provider.AWS
    endpoint = "https://sts.amazonaws.com (GetCallerIdentity)"
    description = (
        "Calls STS GetCallerIdentity to check if a key pair is active (read-only). "
        "Requires both the Access Key ID and the Secret Access Key."
    )

    def verify(self, secret: SecretBuffer) -> VerificationResult:
        return VerificationResult(
            provider=self.provider,
            active=False,
            details=(
                "AWS Access Key ID detected but verification requires the corresponding "
                "Secret Access Key. Check the AWS IAM console to verify key status."
            ),
            endpoint="https://sts.amazonaws.com",
        )
