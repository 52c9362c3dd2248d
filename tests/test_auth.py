from auth import USERS_KEY, AccountRegistry, check_password, hash_password


def test_signup_hashes_password_and_logs_in(memory_store):
    registry = AccountRegistry(memory_store)
    user = registry.signup("Asha Rao", "asha@example.com", "s3cret")

    assert user.name == "Asha Rao"
    stored = memory_store.get(USERS_KEY)
    assert len(stored) == 1
    assert stored[0]["password"].startswith("$2")
    assert stored[0]["password"] != "s3cret"
    assert registry.current_user() == user


def test_duplicate_email_is_rejected(memory_store):
    registry = AccountRegistry(memory_store)
    assert registry.signup("Asha", "asha@example.com", "one") is not None
    assert registry.signup("Other", "ASHA@example.com ", "two") is None
    assert len(registry.accounts()) == 1


def test_signup_requires_every_field(memory_store):
    registry = AccountRegistry(memory_store)
    assert registry.signup("", "a@example.com", "pw") is None
    assert registry.signup("A", "  ", "pw") is None
    assert registry.signup("A", "a@example.com", "") is None
    assert memory_store.get(USERS_KEY) is None


def test_login(memory_store):
    registry = AccountRegistry(memory_store)
    created = registry.signup("Asha", "asha@example.com", "s3cret")
    registry.logout()
    assert registry.current_user() is None

    assert registry.login("asha@example.com", "wrong") is None
    assert registry.login("nobody@example.com", "s3cret") is None
    assert registry.login("Asha@Example.com", "s3cret") == created
    assert registry.current_user() == created


def test_legacy_plaintext_account_still_logs_in(memory_store):
    memory_store.set(USERS_KEY, [{"id": "u1", "name": "Old", "email": "old@example.com", "password": "plain"}])
    registry = AccountRegistry(memory_store)
    assert registry.login("old@example.com", "plain").id == "u1"
    assert registry.login("old@example.com", "nope") is None


def test_check_password():
    hashed = hash_password("pw")
    assert check_password("pw", hashed)
    assert not check_password("other", hashed)


def test_malformed_session_is_ignored(memory_store):
    registry = AccountRegistry(memory_store, "browser-1")
    memory_store.set(registry.session_key, {"name": "no id"})
    assert registry.current_user() is None


def test_new_session_on_shared_store_starts_logged_out(memory_store):
    first = AccountRegistry(memory_store, "browser-1")
    asha = first.signup("Asha", "asha@example.com", "s3cret")

    second = AccountRegistry(memory_store, "browser-2")
    assert second.current_user() is None
    assert AccountRegistry(memory_store).current_user() is None

    bob = second.signup("Bob", "bob@example.com", "pw")
    second.logout()
    assert second.current_user() is None
    assert first.current_user() == asha
    assert AccountRegistry(memory_store, "browser-1").current_user() == asha
    assert bob.id != asha.id
