from __future__ import annotations

from pathlib import Path

import pytest

from localconfig_vdf import parse_localconfig_apps, read_localconfig_apps
from vdf_errors import MissingKeyError, VdfFormatError

LOCALCONFIG = """
"UserLocalConfigStore"
{
	"Software"
	{
		"Valve"
		{
			"Steam"
			{
				"apps"
				{
					"730"
					{
						"LastPlayed"		"1700000000"
					}
					"440"
					{
						"Playtime"		"12"
					}
				}
			}
		}
	}
}
"""


def test_lists_app_ids_in_order() -> None:
    assert parse_localconfig_apps(LOCALCONFIG) == ["730", "440"]


def test_key_lookup_ignores_case() -> None:
    text = LOCALCONFIG.replace('"Software"', '"software"').replace('"apps"', '"Apps"')
    assert parse_localconfig_apps(text) == ["730", "440"]


def test_missing_apps_key() -> None:
    text = LOCALCONFIG.replace('"apps"', '"recent"')
    with pytest.raises(MissingKeyError) as info:
        parse_localconfig_apps(text)
    assert info.value.key == "apps"


def test_invalid_text() -> None:
    with pytest.raises(VdfFormatError):
        parse_localconfig_apps('"UserLocalConfigStore"\n{\n\t"Software"\n\t{\n')


def test_read_from_file(tmp_path: Path) -> None:
    path = tmp_path / "localconfig.vdf"
    path.write_text(LOCALCONFIG, encoding="utf-8")
    assert read_localconfig_apps(str(path)) == ["730", "440"]
