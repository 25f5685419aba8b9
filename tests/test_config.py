from dataclasses import dataclass

import pytest
import yaml

from znet.config import (
    Config,
    ConfigVar,
    default_config,
    from_string_cast,
    to_string_cast,
)


@dataclass(frozen=True)
class Person:
    name: str
    age: int
    gender: int

    @classmethod
    def from_config_string(cls, text):
        node = yaml.safe_load(text)
        return cls(str(node["name"]), int(node["age"]), int(node["gender"]))

    def to_config_string(self):
        return yaml.safe_dump(
            {"name": self.name, "age": self.age, "gender": self.gender}, sort_keys=False
        )


NUMBERS = [1, 2, 3, 4, 5, 6, 7, 8, 9]
LETTERS = {k: v for v, k in enumerate("abcdefghi", start=1)}


@pytest.fixture
def config():
    cfg = Config()
    cfg.create("system.port", 8080, "system port")
    cfg.create("system.vec", list(NUMBERS), "system vec")
    cfg.create("system.list", list(NUMBERS), "system list")
    cfg.create("system.set", set(NUMBERS), "system set")
    cfg.create("system.unordered_set", set(NUMBERS), "system unordered_set")
    cfg.create("system.map", dict(LETTERS), "system map")
    cfg.create("system.unordered_map", dict(LETTERS), "system unordered_map")
    cfg.create("struct.person", Person("John", 20, 1), "system person")
    cfg.create("struct.str_person", {"A": Person("Mike", 20, 1)}, "str person")
    return cfg


CONFIG_YAML = """\
system:
  port: 9900
  vec: [10, 20]
  list:
    - 30
    - 40
  set: [50, 50, 60]
  unordered_set: [70]
  map:
    x: 1
    y: 2
  unordered_map:
    z: 3
struct:
  person:
    name: Alice
    age: 30
    gender: 0
  str_person:
    B:
      name: Bob
      age: 40
      gender: 1
"""


def test_default_values(config):
    assert config.lookup("system.port", int).value == 8080
    assert config.lookup("system.vec", list[int]).value == NUMBERS
    assert config.lookup("system.set", set[int]).value == set(NUMBERS)
    assert config.lookup("system.map", dict[str, int]).value == LETTERS
    assert config.lookup("struct.person", Person).value == Person("John", 20, 1)
    assert config.lookup("struct.str_person", dict[str, Person]).value == {
        "A": Person("Mike", 20, 1)
    }
    assert config.lookup_base("system.port").description == "system port"


def test_lookup_then_set_value(config):
    config.lookup("system.port", int).set_value(1000)
    assert config.lookup_base("system.port").value == 1000


def test_lookup_with_wrong_type_or_missing_name(config):
    assert config.lookup("system.port", str) is None
    assert config.lookup("system.missing", int) is None
    assert config.lookup_base("system.missing") is None


def test_create_existing_returns_same_variable(config):
    var = config.create("system.port", 1, "other")
    assert var is config.lookup_base("system.port")
    assert var.value == 8080


def test_create_name_conflict_raises(config):
    with pytest.raises(TypeError):
        config.create("system.port", "1000", "system port")


def test_create_invalid_name_raises():
    with pytest.raises(ValueError):
        Config().create("bad name", 1)


def test_listener_sees_changes_only(config):
    var = config.lookup("system.port", int)
    var.set_value(1000)
    seen = []
    var.add_listener(1, lambda new, old: seen.append((old, new)))
    var.set_value(1000)
    var.set_value(10000)
    assert seen == [(1000, 10000)]


def test_listeners_run_in_id_order_and_can_be_removed(config):
    var = config.lookup("system.port", int)
    calls = []
    var.add_listener(5, lambda new, old: calls.append(5))
    var.add_listener(2, lambda new, old: calls.append(2))
    var.set_value(1)
    assert calls == [2, 5]
    var.remove_listener(2)
    var.set_value(2)
    assert calls == [2, 5, 5]
    assert var.get_listener(2) is None


def test_get_listener_returns_callback(config):
    var = config.lookup("system.port", int)

    def callback(new, old):
        pass

    var.add_listener(3, callback)
    assert var.get_listener(3) is callback


def test_load_from_file_updates_everything(config, tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    person_changes = []
    config.lookup("struct.person", Person).add_listener(
        2, lambda new, old: person_changes.append((old, new))
    )
    config.load_from_file(str(path))
    assert config.lookup("system.port", int).value == 9900
    assert config.lookup("system.vec", list[int]).value == [10, 20]
    assert config.lookup_base("system.list").value == [30, 40]
    assert config.lookup_base("system.set").value == {50, 60}
    assert config.lookup_base("system.unordered_set").value == {70}
    assert config.lookup_base("system.map").value == {"x": 1, "y": 2}
    assert config.lookup_base("system.unordered_map").value == {"z": 3}
    assert config.lookup_base("struct.person").value == Person("Alice", 30, 0)
    assert config.lookup_base("struct.str_person").value == {"B": Person("Bob", 40, 1)}
    assert person_changes == [(Person("John", 20, 1), Person("Alice", 30, 0))]


def test_load_from_python_data(config):
    config.load_from_yaml({"system": {"port": 1234, "vec": [7]}})
    assert config.lookup_base("system.port").value == 1234
    assert config.lookup_base("system.vec").value == [7]


def test_load_missing_file_raises(config, tmp_path):
    with pytest.raises(FileNotFoundError):
        config.load_from_file(str(tmp_path / "absent.yml"))


def test_null_value_leaves_variable_unchanged(config):
    config.load_from_yaml("system:\n  port:\n")
    assert config.lookup_base("system.port").value == 8080


def test_list_all_yaml_members_skips_invalid_keys():
    node = yaml.compose("system:\n  port: 1\n  vec: [1]\nbad key: 2\n")
    names = [name for name, _ in Config().list_all_yaml_members(node)]
    assert names == ["", "system", "system.port", "system.vec"]


def test_from_string_failure_keeps_value(config):
    var = config.lookup("system.port", int)
    assert var.from_string("abc") is False
    assert var.value == 8080
    assert var.from_string("77") is True
    assert var.value == 77


@pytest.mark.parametrize(
    "name",
    ["system.port", "system.vec", "system.set", "system.map", "struct.person", "struct.str_person"],
)
def test_to_string_round_trips(config, name):
    var = config.lookup_base(name)
    other = ConfigVar(name, None, value_type=var.value_type)
    assert other.from_string(var.to_string()) is True
    assert other.value == var.value


def test_to_string_failure_gives_empty_text():
    assert ConfigVar("x", object()).to_string() == ""


@pytest.mark.parametrize(
    "text, value_type, expected",
    [
        ("8080", int, 8080),
        ("-5", int, -5),
        ("1.5", float, 1.5),
        ("1", bool, True),
        ("0", bool, False),
        ("hello", str, "hello"),
        ("- 3\n- 1\n- 3", set[int], {1, 3}),
        ("[1, 2, 3]", list[int], [1, 2, 3]),
        ("a: 1\nb: 2", dict[str, int], {"a": 1, "b": 2}),
        ("5", list[int], []),
        ("", list[int], []),
    ],
)
def test_from_string_cast_values(text, value_type, expected):
    assert from_string_cast(text, value_type) == expected


@pytest.mark.parametrize(
    "text, value_type",
    [
        (" 8080", int),
        ("abc", int),
        ("8_0", int),
        ("true", bool),
        ("", float),
        ("a: 1", list[int]),
        ("- x", list[int]),
        ("- 1", dict[str, int]),
    ],
)
def test_from_string_cast_rejects(text, value_type):
    with pytest.raises(ValueError):
        from_string_cast(text, value_type)


def test_unsupported_types_raise():
    with pytest.raises(TypeError):
        from_string_cast("x", complex)
    with pytest.raises(TypeError):
        to_string_cast(object())


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, "1"),
        (8080, "8080"),
        ([], "[]"),
        ([1, 2], "- 1\n- 2"),
        ({3, 1}, "- 1\n- 3"),
        ({"a": 1, "b": 2}, "a: 1\nb: 2"),
    ],
)
def test_to_string_cast_values(value, expected):
    assert to_string_cast(value) == expected


def test_string_list_keeps_numeric_looking_strings():
    text = to_string_cast(["1", "a"])
    assert from_string_cast(text, list[str]) == ["1", "a"]


def test_default_config_is_shared():
    default_config().create("tests.shared_marker", 5, "shared marker")
    found = default_config().lookup("tests.shared_marker", int)
    assert found.value == 5
    assert found.description == "shared marker"