"""Identity hashing and participant resolution tests."""

from datetime import datetime, timezone

import pytest

from survey_engine.identity import (
    ParticipantIdentityResolver,
    device_fingerprint,
    participant_hash,
)
from survey_engine.interfaces import RemoteError
from survey_engine.models.session import ParticipantLookup

from helpers.fakes import FakeBackend


class TestParticipantHash:

    def test_normalises_name_and_phone(self):
        assert participant_hash("  Jane Doe ", "+1 (555) 010-0100") == participant_hash(
            "jane doe", "15550100100"
        )

    def test_order_sensitive(self):
        assert participant_hash("ab", "12") != participant_hash("ba", "21")

    def test_length(self):
        assert len(participant_hash("Jane", "555")) == 32

    @pytest.mark.parametrize("name,phone", [("", "555"), ("Jane", ""), ("Jane", "n/a")])
    def test_missing_parts_rejected(self, name, phone):
        with pytest.raises(ValueError):
            participant_hash(name, phone)


class TestDeviceFingerprint:

    def test_independent_of_key_order(self):
        a = device_fingerprint({"agent": "x", "screen": "1080x1920", "tz": "Asia/Kolkata"})
        b = device_fingerprint({"tz": "Asia/Kolkata", "agent": "x", "screen": "1080x1920"})
        assert a == b

    def test_differs_per_device(self):
        assert device_fingerprint({"agent": "x"}) != device_fingerprint({"agent": "y"})


class TestResolver:

    @pytest.mark.asyncio
    async def test_new_participant(self):
        backend = FakeBackend()
        lookup = await ParticipantIdentityResolver(backend).resolve("Jane", "555", "fp1")
        assert lookup.status == "new"
        assert lookup.participant_hash == participant_hash("Jane", "555")
        assert backend.lookups == [(participant_hash("Jane", "555"), "fp1")]

    @pytest.mark.asyncio
    async def test_completed_participant(self):
        backend = FakeBackend()
        done = datetime(2026, 9, 30, tzinfo=timezone.utc)
        backend.lookup = ParticipantLookup(status="completed", session_id="s1", completed_at=done)
        lookup = await ParticipantIdentityResolver(backend).resolve("Jane", "555")
        assert lookup.status == "completed"
        assert lookup.completed_at == done
        assert lookup.participant_hash == participant_hash("Jane", "555"), (
            "Hash is filled in when the server omits it"
        )

    @pytest.mark.asyncio
    async def test_anonymous_skips_lookup(self):
        backend = FakeBackend()
        backend.offline = True  # would raise if called
        lookup = await ParticipantIdentityResolver(backend).resolve(None, None, anonymous=True)
        assert lookup.status == "new"
        assert lookup.participant_hash is None
        assert backend.lookups == []

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self):
        backend = FakeBackend()
        backend.offline = True
        with pytest.raises(RemoteError):
            await ParticipantIdentityResolver(backend).resolve("Jane", "555")
