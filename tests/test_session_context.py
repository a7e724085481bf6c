from __future__ import annotations

import pytest

from astra_sdk.config import const
from astra_sdk.domain import CapabilityKind
from astra_sdk.errors import AstraError, CapabilityUnavailable, ConfigurationError, IllegalArgument
from astra_sdk.services.context import SessionContext

from conftest import Recorder


@pytest.fixture
def session(settings, recorder):
    return SessionContext(settings=settings, factories=recorder.factories())


def test_connect_rejects_malformed_token(session, recorder):
    with pytest.raises(IllegalArgument) as ei:
        session.connect("not-a-token")
    assert const.TOKEN_PREFIX in str(ei.value)
    assert recorder.devops == []


def test_connect_reads_token_from_section(session, astrarc, token):
    astrarc(f"[default]\n{const.ASTRA_DB_APPLICATION_TOKEN}={token}\n")
    client = session.connect()
    assert session.token == token
    assert client.is_available(CapabilityKind.CONTROL_PLANE)


def test_connect_missing_section(session, astrarc):
    astrarc("[other]\n")
    with pytest.raises(ConfigurationError) as ei:
        session.connect()
    assert ei.value.section == "default"


def test_connect_missing_token_key(session, astrarc):
    astrarc("[default]\nASTRA_DB_ID=db1\n")
    with pytest.raises(ConfigurationError) as ei:
        session.connect()
    assert ei.value.field == const.ASTRA_DB_APPLICATION_TOKEN


def test_connect_rejected_by_remote(settings, token):
    session = SessionContext(settings=settings, factories=Recorder(reject=True).factories())
    with pytest.raises(CapabilityUnavailable) as ei:
        session.connect(token)
    assert ei.value.cause is not None


def test_use_database_builds_new_client(session, recorder, token):
    first = session.connect(token)
    second = session.use_database("db1", "us-east-1")
    assert second is not first
    assert first.capabilities.available() == [CapabilityKind.CONTROL_PLANE]
    assert second.is_available(CapabilityKind.TABULAR_GATEWAY)
    assert recorder.devops[0].closed
    third = session.exit_database()
    assert not third.is_available(CapabilityKind.TABULAR_GATEWAY)


def test_client_before_connect(session):
    with pytest.raises(AstraError):
        session.client


def test_connect_takes_token_from_environment(session, monkeypatch, token):
    monkeypatch.setenv(const.ASTRA_DB_APPLICATION_TOKEN, token)
    client = session.connect()
    assert session.token == token
    assert client.is_available(CapabilityKind.CONTROL_PLANE)


def test_connect_property_outranks_config_file(settings, recorder, astrarc, token):
    astrarc(f"[default]\n{const.ASTRA_DB_APPLICATION_TOKEN}=AstraCS:from:file\n")
    session = SessionContext(settings=settings, factories=recorder.factories(), properties={const.ASTRA_DB_APPLICATION_TOKEN: token})
    session.connect()
    assert session.token == token
    assert recorder.devops[0].token == token
