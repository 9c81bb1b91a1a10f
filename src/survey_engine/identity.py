"""Participant identity — hashing and the dedup lookup.

A participant is identified by a hash of their normalised name and the
digits of their phone number, so the raw values never need to be sent for
the lookup.  A device fingerprint is sent alongside; a prior session that
matches either value decides the entry point:

  - **new**: no prior session; the respondent picks a role
  - **in_progress**: a session exists and is unfinished; it is resumed
  - **completed**: the respondent already finished; re-entry is refused

Anonymous entry skips the lookup entirely and is always ``new``.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Mapping

from survey_engine.interfaces import SessionBackend
from survey_engine.models.session import ParticipantLookup

logger = logging.getLogger(__name__)

# Hex characters kept from the SHA-256 digest
HASH_LENGTH = 32


def participant_hash(name: str, phone: str) -> str:
    """Deterministic hash of ``{name}-{phone digits}``.

    The name is trimmed and lower-cased; every non-digit is stripped from
    the phone number, so formatting differences do not change the hash.
    """
    if not name or not name.strip():
        raise ValueError("Participant name is required")
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Participant phone number is required")
    normalised = f"{name.strip().lower()}-{digits}"
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def device_fingerprint(components: Mapping[str, object]) -> str:
    """Hash device characteristics (user agent, screen, timezone, ...).

    Components are joined with ``|`` in key order so the result does not
    depend on dict insertion order.
    """
    joined = "|".join(str(components[key]) for key in sorted(components))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:HASH_LENGTH]


class ParticipantIdentityResolver:
    """Resolves a participant to new / in_progress / completed."""

    def __init__(self, backend: SessionBackend) -> None:
        self._backend = backend

    async def resolve(
        self,
        name: str | None,
        phone: str | None,
        fingerprint: str | None = None,
        *,
        anonymous: bool = False,
    ) -> ParticipantLookup:
        """Look up prior sessions for this participant.

        Raises ``ValueError`` when name or phone is missing for a
        non-anonymous entry, and ``RemoteError`` when the lookup cannot
        reach the server.
        """
        if anonymous:
            return ParticipantLookup(status="new")

        hashed = participant_hash(name or "", phone or "")
        lookup = await self._backend.check_participant(
            participant_hash=hashed, fingerprint=fingerprint,
        )
        if lookup.participant_hash is None:
            lookup = lookup.model_copy(update={"participant_hash": hashed})
        logger.info("Participant lookup: status=%s", lookup.status)
        return lookup
