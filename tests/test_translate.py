import json

import pytest

from mapart.translate import Translator, sync_language_file


@pytest.fixture
def lang_file(tmp_path):
    path = tmp_path / "lang.json"
    path.write_text(
        json.dumps({"Build over!": "Done!", "progress": "{} / {}", "bad": 5}),
        encoding="utf-8",
    )
    return path


def test_get_local_found(lang_file):
    assert Translator(lang_file).get_local("Build over!") == "Done!"


def test_get_local_missing_returns_key(lang_file):
    assert Translator(lang_file).get_local("Unknown file!") == "Unknown file!"


def test_get_local_non_string_raises(lang_file):
    with pytest.raises(TypeError):
        Translator(lang_file).get_local("bad")


def test_tr_formats(lang_file):
    assert Translator(lang_file).tr("progress", 3, 16) == "3 / 16"


def test_tr_missing_key_uses_key_as_pattern(lang_file):
    assert Translator(lang_file).tr("{} error!", 7) == "7 error!"


def test_missing_file_load_false(tmp_path):
    translator = Translator(tmp_path / "none.json")
    assert translator.load() is False
    assert translator.get_local("Build over!") == "Build over!"


def test_load_true_and_reload(lang_file):
    translator = Translator(lang_file)
    lang_file.write_text(json.dumps({"Build over!": "Finished"}), encoding="utf-8")
    assert translator.load() is True
    assert translator.get_local("Build over!") == "Finished"


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        Translator(path)


def test_non_object_json_falls_back_to_key(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert Translator(path).get_local("key") == "key"


def test_sync_missing_source(tmp_path):
    assert sync_language_file(tmp_path / "a.json", tmp_path / "b.json") is False
    assert not (tmp_path / "b.json").exists()


def test_sync_copies_when_target_missing(tmp_path):
    src = tmp_path / "a.json"
    src.write_bytes(b'{"k": "v"}')
    dst = tmp_path / "b.json"
    assert sync_language_file(src, dst) is True
    assert dst.read_bytes() == src.read_bytes()


def test_sync_identical_no_copy(tmp_path):
    src = tmp_path / "a.json"
    dst = tmp_path / "b.json"
    src.write_bytes(b'{"k": "v"}')
    dst.write_bytes(b'{"k": "v"}')
    assert sync_language_file(src, dst) is False


@pytest.mark.parametrize("old", [b'{"k": "w"}', b'{"k": "v"} ', b""])
def test_sync_overwrites_when_different(tmp_path, old):
    src = tmp_path / "a.json"
    dst = tmp_path / "b.json"
    src.write_bytes(b'{"k": "v"}')
    dst.write_bytes(old)
    assert sync_language_file(src, dst) is True
    assert dst.read_bytes() == b'{"k": "v"}'