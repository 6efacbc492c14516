import io
import json
import time

import pytest

from idxtool.client import AlgoliaError, Console
from idxtool.index_config import (
    ConfigError,
    ExportConfig,
    ExportOptions,
    ImportOptions,
    ask_export_config,
    ask_import_config,
    config_file_name,
    get_index_config,
    get_rules,
    get_synonyms,
    read_config_from_file,
    validate_export_config_flags,
    validate_import_config_flags,
)


def make_console(stdin=""):
    return Console(
        stdin=io.StringIO(stdin),
        stdout=io.StringIO(),
        stderr=io.StringIO(),
        stdin_tty=False,
        stdout_tty=False,
    )


@pytest.fixture
def config_mock(tmp_path):
    path = tmp_path / "config_mock.json"
    path.write_text(
        json.dumps(
            {
                "rules": [{"objectID": "rule-1", "consequence": {}}],
                "synonyms": [{"objectID": "syn-1", "type": "synonym", "synonyms": ["a", "b"]}],
            }
        ),
        encoding="utf-8",
    )
    return str(path)


class FakeIndex:
    def __init__(self, rules=(), synonyms=(), settings=None, fail=None):
        self.rules = list(rules)
        self.synonyms = list(synonyms)
        self.settings = settings
        self.fail = fail

    def _iterate(self, kind, items):
        if self.fail == kind:
            raise AlgoliaError("boom")
        yield from items

    def browse_rules(self):
        return self._iterate("rules", self.rules)

    def browse_synonyms(self):
        return self._iterate("synonyms", self.synonyms)

    def get_settings(self):
        if self.fail == "settings":
            raise AlgoliaError("boom")
        return self.settings


def test_validate_export_no_existing_index():
    opts = ExportOptions(
        index_name="INDICE_1", scope=["settings", "rules", "synonyms"], existing_indices=[]
    )
    with pytest.raises(ConfigError) as info:
        validate_export_config_flags(opts, make_console())
    assert str(info.value) == "X Indice 'INDICE_1' doesn't exist"


@pytest.mark.parametrize("directory", ["", "test/folder"])
def test_validate_export_existing_index(directory):
    opts = ExportOptions(
        index_name="INDICE_1",
        scope=["settings", "rules", "synonyms"],
        existing_indices=["INDICE_1", "INDICE_2"],
        directory=directory,
    )
    assert validate_export_config_flags(opts, make_console()) is None
    assert opts.directory == directory


@pytest.mark.parametrize("scope", [["rules"], ["rules", "synonyms"]])
def test_validate_import_ok(config_mock, scope):
    opts = ImportOptions(scope=scope, file_path=config_mock)
    validate_import_config_flags(opts, make_console())
    assert opts.import_config.rules == [{"objectID": "rule-1", "consequence": {}}]
    assert opts.import_config.synonyms[0]["objectID"] == "syn-1"
    assert opts.import_config.settings is None


def test_validate_import_clear_rules_not_in_scope(config_mock):
    opts = ImportOptions(scope=["synonyms"], file_path=config_mock, clear_existing_rules=True)
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(opts, make_console())
    assert str(info.value) == "X Cannot clear existing rules if rules are not in scope"


def test_validate_import_clear_synonyms_not_in_scope(config_mock):
    opts = ImportOptions(scope=["rules"], file_path=config_mock, clear_existing_synonyms=True)
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(opts, make_console())
    assert str(info.value) == "X Cannot clear existing synonyms if synonyms are not in scope"


def test_validate_import_wrong_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    opts = ImportOptions(scope=["settings", "rules", "synonyms"], file_path="wrong_path.json")
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(opts, make_console())
    assert str(info.value) == (
        "X An error occurred when opening file: open wrong_path.json: no such file or directory"
    )


def test_validate_import_settings_missing(config_mock):
    opts = ImportOptions(scope=["settings"], file_path=config_mock)
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(opts, make_console())
    assert str(info.value) == "X No settings found in config file"


def test_validate_import_requires_file():
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(ImportOptions(scope=["rules"]), make_console())
    assert str(info.value) == "X Config file is required"


def test_validate_import_requires_scope(config_mock):
    with pytest.raises(ConfigError) as info:
        validate_import_config_flags(ImportOptions(file_path=config_mock), make_console())
    assert str(info.value) == "X Scope is required"


def test_read_config_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError) as info:
        read_config_from_file(str(path), make_console())
    assert str(info.value).startswith("X An error occurred when parsing JSON file:")


def test_read_config_with_settings(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"settings": {"hitsPerPage": 5}}), encoding="utf-8")
    config = read_config_from_file(str(path), make_console())
    assert config.settings == {"hitsPerPage": 5}
    assert config.rules == []
    assert config.synonyms == []


def test_config_file_name_with_path():
    before = int(time.time())
    name = config_file_name("dir", "MOVIES", "APP")
    after = int(time.time())
    prefix = "dir/export-MOVIES-APP-"
    assert name.startswith(prefix)
    assert name.endswith(".json")
    stamp = int(name[len(prefix):-len(".json")])
    assert before <= stamp <= after


def test_config_file_name_without_path():
    name = config_file_name("", "MOVIES", "APP")
    assert name.startswith("export-MOVIES-APP-")
    assert "/" not in name


def test_get_rules_and_synonyms():
    index = FakeIndex(rules=[{"objectID": "r"}], synonyms=[{"objectID": "s"}])
    assert get_rules(index) == [{"objectID": "r"}]
    assert get_synonyms(index) == [{"objectID": "s"}]


def test_get_rules_error_is_wrapped():
    with pytest.raises(AlgoliaError) as info:
        get_rules(FakeIndex(fail="rules"))
    assert str(info.value) == "error while iterating source index rules: boom"


def test_get_index_config_full_scope():
    index = FakeIndex(
        rules=[{"objectID": "r"}], synonyms=[{"objectID": "s"}], settings={"hitsPerPage": 3}
    )
    config = get_index_config(index, ["settings", "rules", "synonyms"], make_console())
    assert config.to_dict() == {
        "settings": {"hitsPerPage": 3},
        "rules": [{"objectID": "r"}],
        "synonyms": [{"objectID": "s"}],
    }


def test_get_index_config_respects_scope():
    index = FakeIndex(rules=[{"objectID": "r"}], settings={"hitsPerPage": 3})
    config = get_index_config(index, ["rules"], make_console())
    assert config.to_dict() == {"rules": [{"objectID": "r"}]}


def test_get_index_config_nothing_to_export():
    with pytest.raises(ConfigError) as info:
        get_index_config(FakeIndex(), ["rules", "synonyms"], make_console())
    assert str(info.value) == "X No config to export"


def test_get_index_config_retrieval_error():
    with pytest.raises(ConfigError) as info:
        get_index_config(FakeIndex(fail="rules"), ["rules"], make_console())
    assert str(info.value) == (
        "X An error occurred when retrieving rules: error while iterating source index rules: boom"
    )


def test_export_config_to_dict_omits_empty():
    assert ExportConfig().to_dict() == {}


def test_ask_export_config():
    opts = ExportOptions(index_name="foo")
    ask_export_config(opts, make_console("settings, rules\nout\n"))
    assert opts.scope == ["settings", "rules"]
    assert opts.directory == "out"


def test_ask_export_config_reasks_invalid_scope():
    opts = ExportOptions(index_name="foo")
    ask_export_config(opts, make_console("bogus\nsynonyms\n\n"))
    assert opts.scope == ["synonyms"]
    assert opts.directory == ""


def test_ask_import_config(config_mock):
    opts = ImportOptions(scope=["settings"])
    answers = f"{config_mock}\nsettings\nrules,synonyms\ny\nn\nn\ny\n"
    ask_import_config(opts, make_console(answers))
    assert opts.file_path == config_mock
    assert opts.scope == ["rules", "synonyms"]
    assert opts.clear_existing_synonyms is True
    assert opts.forward_synonyms_to_replicas is False
    assert opts.clear_existing_rules is False
    assert opts.forward_rules_to_replicas is True
    assert opts.forward_settings_to_replicas is False
    assert len(opts.import_config.rules) == 1