from __future__ import annotations

import pytest
from pydantic import ValidationError

from sink_binder.config import Settings, get_settings
from sink_binder.domain.modes import InsertMode, PrimaryKeyMode


def test_defaults(make_settings):
    settings = make_settings()

    assert settings.pk_mode is PrimaryKeyMode.NONE
    assert settings.insert_mode is InsertMode.INSERT
    assert settings.pk_fields == []
    assert settings.delete_enabled is False
    assert settings.batch_size == 3000


def test_comma_separated_lists_from_environment(monkeypatch):
    monkeypatch.setenv("PK_MODE", "RECORD_VALUE")
    monkeypatch.setenv("PK_FIELDS", "id, region")
    monkeypatch.setenv("ENUM_SETS", "tags")
    monkeypatch.setenv("INSERT_MODE", "Update")

    settings = Settings(_env_file=None)

    assert settings.pk_mode is PrimaryKeyMode.RECORD_VALUE
    assert settings.pk_fields == ["id", "region"]
    assert settings.enum_sets == ["tags"]
    assert settings.insert_mode is InsertMode.UPDATE


def test_deletes_require_record_key_mode(make_settings):
    with pytest.raises(ValidationError, match="record_key"):
        make_settings(delete_enabled=True, pk_mode=PrimaryKeyMode.KAFKA)

    assert make_settings(delete_enabled=True, pk_mode="record_key").delete_enabled


def test_deleted_flag_requires_deletes_enabled(make_settings):
    with pytest.raises(ValidationError, match="delete_enabled"):
        make_settings(delete_by_field=True, pk_mode="record_key")

    with pytest.raises(ValidationError, match="record_key"):
        make_settings(delete_by_field=True, delete_enabled=True, pk_mode=PrimaryKeyMode.NONE)

    settings = make_settings(delete_by_field=True, delete_enabled=True, pk_mode="record_key")
    assert settings.delete_by_field


def test_batch_size_must_be_positive(make_settings):
    with pytest.raises(ValidationError):
        make_settings(batch_size=0)


def test_dsn_is_composed_from_database_settings(make_settings):
    settings = make_settings(db_host="db", db_port=6543, db_user="u", db_password="p", db_name="n")

    assert settings.dsn == "postgresql://u:p@db:6543/n"


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("TABLE_NAME", "first")
    first = get_settings()
    monkeypatch.setenv("TABLE_NAME", "second")

    assert get_settings() is first
