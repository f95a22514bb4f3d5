"""
envbind - unit tests for the value resolver and parse entrypoints

File: tests/unit/test_resolver.py

Purpose
- Validate lookup precedence, required/default policy, fail-fast errors, and
  ``parse``/``must_parse`` behaviour against injected environments.

What this test file should cover
- Prefixed key > bare override key > default literal.
- Default beats required; required without default fails with the effective key.
- Coercion errors carry field name, type, raw value, and cause.
- Fail-fast: earlier fields keep values, later fields stay untouched.
- Custom setters and process environment access through ``monkeypatch``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

import pytest

from envbind import (
    Duration,
    FieldCoercionError,
    InvalidConfigKindError,
    RequiredFieldMissingError,
    mapping_lookup,
    must_parse,
    parse,
    tag,
)


@dataclass
class Config:
    host: str = ""
    port: int = field(default=0, metadata=tag(default="8080", env="app_port"))
    user: str = field(
        default="", metadata=tag(env="config_user", default="joseph", required=True)
    )


@dataclass
class Web:
    host: str = ""


@dataclass
class DB:
    port: int = 0


@dataclass
class Nested:
    web: Web = field(default_factory=Web)
    db: DB = field(default_factory=DB)


@dataclass
class Ordered:
    first: str = ""
    second: int = 0
    third: str = ""


class Recorder:
    calls: list[str] = []

    def __init__(self) -> None:
        self.raw = ""

    def set(self, value: str) -> None:
        if value == "reject":
            raise ValueError("recorder refused value")
        Recorder.calls.append(value)
        self.raw = value


@dataclass
class WithSetters:
    a: Recorder = field(default_factory=Recorder)
    b: Recorder = field(default_factory=Recorder)


def test_parse_binds_prefixed_keys_fallbacks_and_defaults() -> None:
    cfg = Config()

    parse("app", cfg, lookup=mapping_lookup({"APP_HOST": "localhost", "APP_PORT": "9090"}))

    assert cfg == Config(host="localhost", port=9090, user="joseph")


def test_prefixed_override_key_beats_bare_override_key() -> None:
    cfg = Config()
    env = {"APP_APP_PORT": "1111", "APP_PORT": "2222", "APP_CONFIG_USER": "root"}

    parse("app", cfg, lookup=mapping_lookup(env))

    assert cfg.port == 1111
    assert cfg.user == "root"


def test_bare_override_key_is_used_without_prefix() -> None:
    @dataclass
    class Settings:
        port: int = field(default=0, metadata={"env": "my_port"})

    cfg = Settings()
    parse("app", cfg, lookup=mapping_lookup({"MY_PORT": "9000"}))

    assert cfg.port == 9000


def test_default_applies_when_environment_is_empty() -> None:
    @dataclass
    class Settings:
        user: str = field(default="", metadata={"default": "joseph"})
        timeout: Duration = field(default=Duration(0), metadata={"default": "2s"})
        grace: timedelta = field(default=timedelta(0), metadata={"default": "150ms"})

    cfg = Settings()
    parse("app", cfg, lookup=mapping_lookup({}))

    assert cfg.user == "joseph"
    assert cfg.timeout == 2_000_000_000
    assert cfg.grace == timedelta(milliseconds=150)


def test_empty_values_count_as_unset() -> None:
    cfg = Config(host="keep")

    parse("app", cfg, lookup=mapping_lookup({"APP_HOST": "", "APP_APP_PORT": "", "APP_PORT": ""}))

    assert cfg.host == "keep"
    assert cfg.port == 8080


def test_unset_optional_field_keeps_its_zero_value() -> None:
    cfg = Ordered()

    parse("app", cfg, lookup=mapping_lookup({}))

    assert cfg == Ordered()


def test_required_without_default_fails_with_effective_key() -> None:
    @dataclass
    class Settings:
        host: str = field(default="", metadata={"required": "true"})
        token: str = field(default="", metadata={"required": "true", "env": "api_token"})

    with pytest.raises(RequiredFieldMissingError) as excinfo:
        parse("app", Settings(), lookup=mapping_lookup({}))
    assert excinfo.value.key == "APP_HOST"
    assert excinfo.value.name == "host"

    with pytest.raises(RequiredFieldMissingError) as excinfo:
        parse("app", Settings(), lookup=mapping_lookup({"APP_HOST": "h"}))
    assert excinfo.value.key == "API_TOKEN"


def test_default_satisfies_required() -> None:
    cfg = Config()

    parse("app", cfg, lookup=mapping_lookup({}))

    assert cfg.user == "joseph"


def test_malformed_integer_raises_field_coercion_error() -> None:
    cfg = Config()

    with pytest.raises(FieldCoercionError) as excinfo:
        parse(
            "app",
            cfg,
            lookup=mapping_lookup({"APP_PORT": "not_a_number", "APP_HOST": "localhost"}),
        )

    error = excinfo.value
    assert error.name == "port"
    assert error.key == "APP_PORT"
    assert error.type_name == "int"
    assert error.value == "not_a_number"
    assert isinstance(error.cause, ValueError)
    assert error.__cause__ is error.cause
    assert "error assigning to field port" in str(error)
    assert "'not_a_number'" in str(error)
    assert cfg.host == "localhost"


def test_coercion_error_message_masks_sensitive_values() -> None:
    @dataclass
    class Settings:
        db_password: int = 0

    with pytest.raises(FieldCoercionError) as excinfo:
        parse("app", Settings(), lookup=mapping_lookup({"APP_DB_PASSWORD": "hunter2"}))

    assert excinfo.value.value == "hunter2"
    assert "hunter2" not in str(excinfo.value)


def test_first_failure_aborts_remaining_fields() -> None:
    cfg = Ordered()
    env = {"APP_FIRST": "one", "APP_SECOND": "two", "APP_THIRD": "three"}

    with pytest.raises(FieldCoercionError):
        parse("app", cfg, lookup=mapping_lookup(env))

    assert cfg.first == "one"
    assert cfg.second == 0
    assert cfg.third == ""


def test_nested_records_extend_the_prefix() -> None:
    cfg = Nested()

    parse("app", cfg, lookup=mapping_lookup({"APP_WEB_HOST": "localhost", "APP_DB_PORT": "5432"}))

    assert cfg.web.host == "localhost"
    assert cfg.db.port == 5432


def test_nested_coercion_error_names_field_path() -> None:
    with pytest.raises(FieldCoercionError) as excinfo:
        parse("app", Nested(), lookup=mapping_lookup({"APP_DB_PORT": "x"}))

    assert excinfo.value.name == "db.port"


def test_map_fields_accept_quoted_json() -> None:
    @dataclass
    class Settings:
        labels: dict[str, str] = field(default_factory=dict)
        limits: dict[str, int] = field(default_factory=dict)

    cfg = Settings()
    parse(
        "app",
        cfg,
        lookup=mapping_lookup({"APP_LABELS": "'{\"a\":\"b\"}'", "APP_LIMITS": '{"cpu": 2}'}),
    )

    assert cfg.labels == {"a": "b"}
    assert cfg.limits == {"cpu": 2}


def test_unsupported_field_kind_is_a_coercion_error() -> None:
    @dataclass
    class Settings:
        hosts: list[str] = field(default_factory=list)

    with pytest.raises(FieldCoercionError, match="unsupported field kind"):
        parse("app", Settings(), lookup=mapping_lookup({"APP_HOSTS": "a,b"}))


def test_custom_setters_run_in_declaration_order() -> None:
    Recorder.calls.clear()
    cfg = WithSetters()

    parse("app", cfg, lookup=mapping_lookup({"APP_A": "first", "APP_B": "second"}))

    assert Recorder.calls == ["first", "second"]
    assert cfg.a.raw == "first"
    assert cfg.b.raw == "second"


def test_custom_setter_rejection_is_wrapped() -> None:
    with pytest.raises(FieldCoercionError, match="recorder refused value") as excinfo:
        parse("app", WithSetters(), lookup=mapping_lookup({"APP_A": "reject"}))

    assert excinfo.value.type_name == "Recorder"


def test_invalid_targets_are_rejected_without_mutation() -> None:
    mapping: dict[str, str] = {}

    with pytest.raises(InvalidConfigKindError):
        parse("app", mapping, lookup=mapping_lookup({"APP_HOST": "x"}))
    with pytest.raises(InvalidConfigKindError):
        parse("app", Config, lookup=mapping_lookup({"APP_HOST": "x"}))

    assert mapping == {}


def test_parse_reads_process_environment_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_HOST", "from-env")
    monkeypatch.delenv("APP_APP_PORT", raising=False)
    monkeypatch.setenv("APP_PORT", "7070")
    cfg = Config()

    parse("app", cfg)

    assert cfg.host == "from-env"
    assert cfg.port == 7070


def test_must_parse_succeeds_quietly() -> None:
    cfg = Config()

    must_parse("app", cfg, lookup=mapping_lookup({"APP_HOST": "localhost"}))

    assert cfg.host == "localhost"


def test_must_parse_aborts_with_system_exit(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.CRITICAL, logger="envbind"):
        with pytest.raises(SystemExit) as excinfo:
            must_parse("app", {}, lookup=mapping_lookup({}))

    assert "invalid config" in str(excinfo.value.code)
    assert isinstance(excinfo.value.__cause__, InvalidConfigKindError)
    assert any("configuration binding failed" in record.message for record in caplog.records)


def test_debug_log_records_describe_resolution(caplog: pytest.LogCaptureFixture) -> None:
    @dataclass
    class Settings:
        host: str = ""
        api_token: str = ""
        port: int = field(default=0, metadata={"default": "80"})

    with caplog.at_level(logging.DEBUG, logger="envbind"):
        parse("app", Settings(), lookup=mapping_lookup({"APP_HOST": "h", "APP_API_TOKEN": "s3cr3t"}))

    resolved = {
        record.field: record for record in caplog.records if hasattr(record, "source")
    }
    assert resolved["host"].source == "env"
    assert resolved["host"].value == "h"
    assert resolved["api_token"].value == "***REDACTED***"
    assert resolved["port"].source == "default"
