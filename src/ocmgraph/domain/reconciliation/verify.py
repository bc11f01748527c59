"""Verification gate run before any graph node is written."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.domain.errors import SignatureMismatchError, VerificationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ocmgraph.domain.model import CanonicalDescriptor, SignatureConfig, VerificationOutcome
    from ocmgraph.domain.ports import SignatureVerifier

log = getLogger(__name__)


@dataclass(slots=True)
class VerificationGate:
    """Orchestrate the external verifier and short-circuit on any failure."""

    verifier: SignatureVerifier

    def check(
        self,
        descriptor: CanonicalDescriptor,
        signatures: Sequence[SignatureConfig],
    ) -> VerificationOutcome:
        """Return the outcome of a successful verification.

        Raises ``SignatureMismatchError`` when the verifier reports a mismatch and
        ``VerificationError`` when verification could not be carried out.
        """

        target = f"{descriptor.name}@{descriptor.version}"
        try:
            outcome = self.verifier(descriptor, signatures)
        except VerificationError:
            raise
        except (OSError, ValueError) as exc:
            raise VerificationError(f"failed to verify component {target}: {exc}") from exc

        if not outcome.verified:
            log.warning("Signature mismatch for %s (digest %s)", target, outcome.digest)
            raise SignatureMismatchError(
                f"attempted to verify component {target}, but the digest didn't match",
                digest=outcome.digest,
            )

        log.info(
            "Verified %s against %d signature(s), digest %s",
            target,
            len(signatures),
            outcome.digest,
        )
        return outcome
