from webauth.settings import get_settings


def test_get_settings_is_cached():
    get_settings.cache_clear()
    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2  # lru_cache returns the same instance


def test_defaults():
    get_settings.cache_clear()
    s = get_settings()
    assert s.resend_limit == 2
    assert s.add_code_lease_enabled is False
    assert s.merge_max_retries > 0


def test_env_overrides_and_cache_clear(monkeypatch):
    monkeypatch.setenv("RESEND_LIMIT", "5")
    monkeypatch.setenv("ADD_CODE_LEASE_ENABLED", "true")
    get_settings.cache_clear()
    s = get_settings()
    assert s.resend_limit == 5
    assert s.add_code_lease_enabled is True

    monkeypatch.delenv("RESEND_LIMIT", raising=False)
    monkeypatch.delenv("ADD_CODE_LEASE_ENABLED", raising=False)
    get_settings.cache_clear()
    s2 = get_settings()
    assert s2.resend_limit != 5
