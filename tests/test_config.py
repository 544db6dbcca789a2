from __future__ import annotations

from pathlib import Path

import pytest

from usermirror.config import Settings, load_settings, resolve_config_path


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    config = tmp_path / "usermirror.yaml"
    config.write_text(
        "\n".join(
            [
                "database_path: data/mirror.sqlite3",
                "page_size: 500",
                "batch_size: 25",
                "batch_delay_seconds: 2.5",
                "max_workers: 10",
                "firebase:",
                "  credentials_path: keys/service.json",
                "  project_id: demo",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config, environ={})

    assert settings.database_path == (tmp_path / "data" / "mirror.sqlite3").resolve()
    assert settings.page_size == 500
    assert settings.batch_size == 25
    assert settings.batch_delay_seconds == 2.5
    assert settings.max_workers == 10
    assert settings.firebase_credentials_path == (tmp_path / "keys" / "service.json").resolve()
    assert settings.firebase_project_id == "demo"


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml", environ={})

    assert settings.page_size == 1000
    assert settings.batch_size == 100
    assert settings.batch_delay_seconds == 1.0
    assert settings.max_workers is None
    assert settings.database_path.name == "users.sqlite3"


def test_environment_overrides(tmp_path: Path) -> None:
    environ = {
        "USERMIRROR_DB_PATH": str(tmp_path / "env.sqlite3"),
        "FIREBASE_SERVICE_ACCOUNT_JSON": '{"type": "service_account"}',
        "FIREBASE_PROJECT_ID": "from-env",
    }

    settings = load_settings(tmp_path / "absent.yaml", environ=environ)

    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()
    assert settings.firebase_credentials_json == '{"type": "service_account"}'
    assert settings.firebase_project_id == "from-env"


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ({"page_size": 0}, "page_size"),
        ({"page_size": 5000}, "page_size"),
        ({"batch_size": "many"}, "batch_size"),
        ({"batch_delay_seconds": -1}, "batch_delay_seconds"),
        ({"firebase": ["not", "a", "mapping"]}, "firebase"),
    ],
)
def test_invalid_values_name_the_field(data, message) -> None:
    with pytest.raises(ValueError, match=message):
        Settings.from_dict(data)


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    config = tmp_path / "list.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(config, environ={})


def test_resolve_config_path(tmp_path: Path) -> None:
    assert resolve_config_path(str(tmp_path / "x.yaml")) == (tmp_path / "x.yaml").resolve()
    assert resolve_config_path(None).name == "usermirror.yaml"


def test_sample_configuration_reaches_default_credentials() -> None:
    sample = Path(__file__).resolve().parents[1] / "config" / "usermirror.yaml"

    settings = load_settings(sample, environ={})

    assert settings.firebase_credentials_path is None
    assert settings.firebase_credentials_json is None
    assert settings.batch_size == 100
