import logging

from statement_ingest.classifier import DEFAULT_BATCH_SIZE, DEFAULT_MODEL
from statement_ingest.config import Settings, load_settings, password_pattern


def test_defaults_without_environment():
    settings = load_settings({})

    assert settings.model == DEFAULT_MODEL
    assert settings.classify_batch_size == DEFAULT_BATCH_SIZE
    assert dict(settings.passwords) == {}


def test_reads_prefixed_keys():
    settings = load_settings(
        {
            "STATEMENT_INGEST_MODEL": "gpt-test",
            "STATEMENT_INGEST_CLASSIFY_BATCH_SIZE": "20",
            "STATEMENT_INGEST_PASSWORD_CHAK": "940101",
            "STATEMENT_INGEST_PASSWORD_LOTTE": "",
            "UNRELATED": "x",
        }
    )

    assert settings.model == "gpt-test"
    assert settings.classify_batch_size == 20
    assert dict(settings.passwords) == {"chak": "940101"}


def test_invalid_batch_size_falls_back_with_warning(caplog):
    caplog.set_level(logging.WARNING, logger="statement_ingest")

    settings = load_settings({"STATEMENT_INGEST_CLASSIFY_BATCH_SIZE": "many"})
    assert settings.classify_batch_size == DEFAULT_BATCH_SIZE
    assert load_settings({"STATEMENT_INGEST_CLASSIFY_BATCH_SIZE": "0"}).classify_batch_size == DEFAULT_BATCH_SIZE
    assert any("config:invalid_int" in r.getMessage() for r in caplog.records)


def test_password_lookup_by_filename():
    settings = Settings(passwords={"chak": "940101", "hyundai": "1234"})

    assert password_pattern("CHAK_20251201.xlsx") == "chak"
    assert password_pattern("kb.xlsx") is None
    assert settings.password_for("Chak_내역.xlsx") == "940101"
    assert settings.password_for("hyundai_202512.xls") == "1234"
    assert settings.password_for("samsung.xlsx") is None
