import json
from pathlib import Path

from symparse import settings
from symparse.parser import parse
from symparse.render import render_text
from symparse.symbol import format_number


def test_defaults_without_a_file() -> None:
    assert settings.get_settings() == settings.DEFAULT_SETTINGS
    assert settings.get_setting("number_precision") == 15


def test_save_keeps_only_known_keys(tmp_path: Path) -> None:
    result = settings.save_settings({"expand_power_limit": 2, "bogus": 1})
    assert result["expand_power_limit"] == 2
    stored = json.loads(Path(settings._SETTINGS_FILE).read_text(encoding="utf-8"))
    assert stored == {"expand_power_limit": 2}


def test_returned_dict_is_a_copy() -> None:
    settings.get_settings()["number_precision"] = 3
    assert settings.get_setting("number_precision") == 15


def test_corrupt_file_falls_back_to_defaults() -> None:
    Path(settings._SETTINGS_FILE).write_text("{not json", encoding="utf-8")
    settings.reload_settings()
    assert settings.get_settings() == settings.DEFAULT_SETTINGS


def test_expand_power_limit_controls_expansion() -> None:
    assert render_text(parse("(x+1)^3")) == "1+3*x+3*x^2+x^3"
    settings.save_settings({"expand_power_limit": 2})
    assert render_text(parse("(x+1)^3")) == "(1+x)^3"


def test_sum_expand_limit_controls_expansion() -> None:
    settings.save_settings({"sum_expand_limit": 5})
    assert render_text(parse("sum(k,k,1,5)")) == "15"
    assert render_text(parse("sum(k,k,1,10)")) == "sum(k,k,1,10)"


def test_number_precision() -> None:
    settings.save_settings({"number_precision": 4})
    assert format_number(1 / 3) == "0.3333"
