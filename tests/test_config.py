import platformdirs
import pytest

from portknock.config import (
    Preset,
    config_dir,
    decrypt_preset,
    delete_all_presets,
    delete_preset,
    encrypt_preset,
    list_presets,
    load_preset,
    preset_exists,
    preset_from_dict,
    preset_path,
    store_preset,
)


@pytest.fixture
def presets_dir(tmp_path, monkeypatch):
    directory = tmp_path / "connection"
    monkeypatch.setattr(
        platformdirs, "user_config_path", lambda *args, **kwargs: directory
    )
    return directory


def _sample():
    return Preset(
        host="example.com",
        ports=["1234", "5678:udp", "9101:tcp"],
        udp=False,
        delay=100,
        ipv4=True,
        ipv6=False,
        verbose=True,
        command="ssh -p 2222 user@example.com",
    )


def test_to_dict_omits_unset_fields():
    data = Preset(host="example.com", ports=["1"]).to_dict()
    assert "command" not in data
    assert "encrypted_content" not in data
    assert data["host"] == "example.com"


def test_dict_round_trip():
    preset = _sample()
    assert preset_from_dict(preset.to_dict()) == preset


def test_dict_round_trip_with_encrypted_content():
    preset = Preset(encrypted_content=b"\x00\x01\xff")
    data = preset.to_dict()
    assert "host" not in data
    assert preset_from_dict(data) == preset


def test_from_dict_missing_field():
    data = _sample().to_dict()
    del data["ports"]
    with pytest.raises(ValueError, match="ports"):
        preset_from_dict(data)


def test_from_dict_bad_delay():
    data = _sample().to_dict()
    data["delay"] = -1
    with pytest.raises(ValueError):
        preset_from_dict(data)


def test_preset_path_is_in_config_dir(presets_dir):
    assert config_dir() == presets_dir
    assert preset_path("home") == presets_dir / "home.toml"


def test_store_and_load(presets_dir):
    preset = _sample()
    store_preset("home", preset)
    assert preset_exists("home")
    assert load_preset("home") == preset


def test_load_missing(presets_dir):
    with pytest.raises(FileNotFoundError):
        load_preset("absent")


def test_list_presets(presets_dir):
    store_preset("b", _sample())
    store_preset("a", _sample())
    assert list_presets() == ["a", "b"]


def test_list_without_directory(presets_dir):
    with pytest.raises(FileNotFoundError, match="No Presets found"):
        list_presets()


def test_delete_preset(presets_dir):
    store_preset("home", _sample())
    delete_preset("home")
    assert not preset_exists("home")


def test_delete_missing_preset(presets_dir):
    presets_dir.mkdir()
    with pytest.raises(FileNotFoundError, match="Config 'nope' was not found"):
        delete_preset("nope")


def test_delete_all(presets_dir):
    store_preset("a", _sample())
    store_preset("b", _sample())
    delete_all_presets()
    assert list_presets() == []


def test_delete_all_without_directory(presets_dir):
    with pytest.raises(FileNotFoundError):
        delete_all_presets()


def test_encrypt_round_trip():
    password = "password"
    preset = _sample()
    blob = encrypt_preset(preset, password)
    assert len(blob) % 16 == 0
    assert decrypt_preset(blob, password) == preset


def test_encrypt_is_deterministic():
    password = "password"
    first = encrypt_preset(_sample(), password)
    second = encrypt_preset(_sample(), password)
    other = encrypt_preset(_sample(), "secret")
    assert len(first) > 0
    assert first == second
    assert other != first
    assert decrypt_preset(second, password) == _sample()


def test_decrypt_wrong_password():
    blob = encrypt_preset(_sample(), "password")
    with pytest.raises(ValueError, match="Wrong Password"):
        decrypt_preset(blob, "secret")


def test_decrypt_garbage():
    with pytest.raises(ValueError):
        decrypt_preset(b"short", "password")


def test_encrypted_preset_stored_and_loaded(presets_dir):
    password = "password"
    preset = _sample()
    store_preset("locked", Preset(encrypted_content=encrypt_preset(preset, password)))
    loaded = load_preset("locked")
    assert loaded.host is None
    assert decrypt_preset(loaded.encrypted_content, password) == preset