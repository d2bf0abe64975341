"""
Application Directory Tests
===========================
"""

from datetime import timedelta

import pytest

from verifly_core.crypto import CredentialCipher
from verifly_core.directory import ApplicationDirectory
from verifly_core.errors import ApplicationNotFound, DecryptionFailure
from verifly_core.models import Application


def make_application(cipher, name, key, secret, now, indexed=True, active=True):
    return Application(
        name=name,
        api_key=cipher.encrypt(key),
        api_secret=cipher.encrypt(secret),
        api_key_lookup=cipher.lookup_hash(key) if indexed else None,
        api_key_expiry=now + timedelta(days=365),
        is_active=active,
    )


@pytest.fixture
def directory(store, cipher):
    return ApplicationDirectory(store.applications, cipher)


class TestApplicationDirectory:
    """Tests for application lookup."""

    @pytest.mark.asyncio
    async def test_find_by_id_decrypts(self, directory, store, cipher, clock):
        app = make_application(cipher, "acme", "app_key_1", "secret_1", clock())
        await store.applications.create(app)

        resolved = await directory.find_by_id(app.id)

        assert resolved.name == "acme"
        assert resolved.api_key == "app_key_1"
        assert resolved.api_secret == "secret_1"

    @pytest.mark.asyncio
    async def test_find_by_name(self, directory, store, cipher, clock):
        app = make_application(cipher, "acme", "app_key_1", "secret_1", clock())
        await store.applications.create(app)

        resolved = await directory.find_by_name("acme")
        assert resolved.id == app.id

    @pytest.mark.asyncio
    async def test_missing_raises_not_found(self, directory):
        with pytest.raises(ApplicationNotFound):
            await directory.find_by_id("missing")
        with pytest.raises(ApplicationNotFound):
            await directory.find_by_name("missing")
        with pytest.raises(ApplicationNotFound):
            await directory.find_by_credential_key("app_missing")

    @pytest.mark.asyncio
    async def test_find_by_credential_key_indexed(self, directory, store, cipher, clock):
        """Indexed rows are found through the lookup hash."""
        await store.applications.create(make_application(cipher, "a", "app_a", "sa", clock()))
        target = make_application(cipher, "b", "app_b", "sb", clock())
        await store.applications.create(target)

        resolved = await directory.find_by_credential_key("app_b")

        assert resolved.id == target.id
        assert resolved.api_secret == "sb"

    @pytest.mark.asyncio
    async def test_find_by_credential_key_legacy_scan(self, directory, store, cipher, clock):
        """Rows without a lookup hash are found by decrypting and comparing."""
        legacy = make_application(cipher, "legacy", "app_legacy", "s", clock(), indexed=False)
        await store.applications.create(legacy)

        resolved = await directory.find_by_credential_key("app_legacy")
        assert resolved.id == legacy.id

    @pytest.mark.asyncio
    async def test_scan_skips_undecryptable_rows(self, directory, store, cipher, clock):
        """A row encrypted under another key does not abort the scan."""
        foreign = CredentialCipher("another-environment-key")
        await store.applications.create(
            make_application(foreign, "foreign", "app_foreign", "s", clock(), indexed=False)
        )
        legacy = make_application(cipher, "legacy", "app_legacy", "s", clock(), indexed=False)
        await store.applications.create(legacy)

        resolved = await directory.find_by_credential_key("app_legacy")
        assert resolved.id == legacy.id

    @pytest.mark.asyncio
    async def test_scan_ignores_inactive_legacy_rows(self, directory, store, cipher, clock):
        await store.applications.create(
            make_application(cipher, "old", "app_old", "s", clock(), indexed=False, active=False)
        )
        with pytest.raises(ApplicationNotFound):
            await directory.find_by_credential_key("app_old")

    @pytest.mark.asyncio
    async def test_indexed_inactive_row_is_returned(self, directory, store, cipher, clock):
        """The caller decides what an inactive application means."""
        app = make_application(cipher, "off", "app_off", "s", clock(), active=False)
        await store.applications.create(app)

        resolved = await directory.find_by_credential_key("app_off")
        assert resolved.is_active is False

    @pytest.mark.asyncio
    async def test_find_by_id_with_corrupt_row(self, directory, store, cipher, clock):
        app = make_application(cipher, "acme", "app_key_1", "secret_1", clock())
        app.api_secret = "corrupted"
        await store.applications.create(app)

        with pytest.raises(DecryptionFailure):
            await directory.find_by_id(app.id)

    def test_resolved_repr_hides_credentials(self, cipher, clock):
        from verifly_core.directory import ResolvedApplication

        resolved = ResolvedApplication(
            id="1", name="n", api_key="app_visible", api_secret="topsecret",
            api_key_expiry=clock(), is_active=True,
        )
        assert "topsecret" not in repr(resolved)
        assert "app_visible" not in repr(resolved)
