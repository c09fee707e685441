from datetime import datetime, timedelta, timezone

import boto3
import pytest
from fastapi.testclient import TestClient

from scoreboard.app import create_app
from scoreboard.core import Settings, create_sql_engine
from scoreboard.services import PlayerService
from scoreboard.storage import SqlPlayerStore


class TickingClock:
    """Clock that moves forward one second every time it is read."""

    def __init__(self, start=datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture()
def settings():
    return Settings(
        environment="test",
        database_url="sqlite://",
        rate_limit_max=0,
        static_dir=None,
    )


@pytest.fixture()
def sql_store(settings):
    store = SqlPlayerStore(create_sql_engine(settings))
    store.prepare()
    yield store
    store.close()


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def service(sql_store, clock):
    return PlayerService(sql_store, clock=clock)


@pytest.fixture()
def table():
    resource = boto3.resource(
        "dynamodb",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    return resource.Table("Players")


@pytest.fixture()
def client(settings, sql_store):
    app = create_app(settings, store=sql_store)
    with TestClient(app) as test_client:
        yield test_client
