import pytest

from anonpeer.settings import Key, Settings, fast_settings


def test_value_is_stable_and_saved():
    settings = Settings()
    value = settings.get(Key.SIZE_WORK)
    assert settings.get(Key.SIZE_WORK) == value

    value += 1
    settings.set(Key.SIZE_WORK, value)
    assert settings.get(Key.SIZE_WORK) == value


def test_defaults():
    settings = Settings()
    assert settings.get(Key.MASK_ROUT) == 0xFFFFFFFFFFFFFFFF
    assert settings.get(Key.TIME_WAIT) == 20
    assert settings.get(Key.TIME_PSDO) == 5000
    assert settings.get(Key.SIZE_PSDO) == 10 << 10
    assert settings.get(Key.SIZE_RTRY) == 3
    assert settings.get(Key.SIZE_WORK) == 20
    assert settings.get(Key.SIZE_CONN) == 10
    assert settings.get(Key.SIZE_PACK) == 8 << 20
    assert settings.get(Key.SIZE_MAPP) == 2 << 10
    assert settings.get(Key.SIZE_SKEY) == 32


def test_plain_integer_keys_match_enum():
    settings = Settings()
    assert settings.get(6) == settings.get(Key.SIZE_WORK) == 20


def test_set_returns_self_for_chaining():
    settings = Settings()
    result = settings.set(Key.TIME_WAIT, 1).set(Key.SIZE_RTRY, 7)
    assert result is settings
    assert settings.get(Key.TIME_WAIT) == 1
    assert settings.get(Key.SIZE_RTRY) == 7


def test_undefined_key_raises():
    with pytest.raises(KeyError):
        Settings().get(999)


@pytest.mark.parametrize("value", [-1, 1 << 64])
def test_set_rejects_out_of_range(value):
    with pytest.raises(ValueError):
        Settings().set(Key.SIZE_WORK, value)


def test_fast_settings():
    settings = fast_settings()
    assert settings.get(Key.TIME_WAIT) == 50
    assert settings.get(Key.TIME_PSDO) == 1000
    assert settings.get(Key.SIZE_RTRY) == 1
    assert settings.get(Key.SIZE_WORK) == 10
    assert settings.get(Key.SIZE_PACK) == 1 << 20
    assert settings.get(Key.SIZE_MAPP) == 1 << 10
    assert settings.get(Key.SIZE_SKEY) == 16
    assert settings.get(Key.SIZE_PSDO) == 10 << 10


def test_constructor_overrides():
    settings = Settings({Key.SIZE_WORK: 3})
    assert settings.get(Key.SIZE_WORK) == 3
    assert settings.get(Key.SIZE_CONN) == 10