from datetime import datetime, timezone
from decimal import Decimal

import pytest
from botocore.stub import ANY, Stubber

from scoreboard.core import BACKEND_DYNAMODB, Settings, StorageError
from scoreboard.storage import LEADERBOARD_PARTITION, DynamoPlayerStore, build_store
from scoreboard.storage import dynamodb as dynamodb_module

NOW = datetime(2024, 1, 1, 0, 5, tzinfo=timezone.utc)


def _item(username, score, created="2024-01-01T00:00:00Z", updated="2024-01-01T00:05:00Z"):
    return {
        "username": {"S": username},
        "score": {"N": str(score)},
        "createdAt": {"S": created},
        "updatedAt": {"S": updated},
        "leaderboard": {"S": LEADERBOARD_PARTITION},
    }


def test_upsert_is_a_single_conditional_update(table):
    store = DynamoPlayerStore(table)
    expected = {
        "TableName": "Players",
        "Key": {"username": "alice"},
        "UpdateExpression": dynamodb_module._UPSERT_EXPRESSION,
        "ExpressionAttributeNames": dynamodb_module._UPSERT_NAMES,
        "ExpressionAttributeValues": {
            ":score": Decimal("10.5"),
            ":now": "2024-01-01T00:05:00Z",
            ":leaderboard": LEADERBOARD_PARTITION,
        },
        "ReturnValues": "ALL_NEW",
    }
    with Stubber(table.meta.client) as stubber:
        stubber.add_response("update_item", {"Attributes": _item("alice", "10.5")}, expected)
        player = store.upsert("alice", 10.5, NOW)
        stubber.assert_no_pending_responses()

    assert "if_not_exists(#createdAt, :now)" in dynamodb_module._UPSERT_EXPRESSION
    assert player.username == "alice"
    assert player.score == 10.5
    assert player.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert player.updated_at == NOW


def test_upsert_wraps_client_errors(table):
    store = DynamoPlayerStore(table)
    with Stubber(table.meta.client) as stubber:
        stubber.add_client_error(
            "update_item",
            service_error_code="ProvisionedThroughputExceededException",
            http_status_code=400,
        )
        with pytest.raises(StorageError) as excinfo:
            store.upsert("alice", 1.0, NOW)

    assert "Throughput" not in excinfo.value.message


def test_get_found_and_missing(table):
    store = DynamoPlayerStore(table)
    with Stubber(table.meta.client) as stubber:
        stubber.add_response(
            "get_item",
            {"Item": _item("bob", 7)},
            {"TableName": "Players", "Key": {"username": "bob"}},
        )
        stubber.add_response(
            "get_item", {}, {"TableName": "Players", "Key": {"username": "nobody"}}
        )

        found = store.get("bob")
        missing = store.get("nobody")

    assert found.username == "bob"
    assert found.score == 7.0
    assert missing is None


def test_top_without_index_scans_every_page_and_sorts(table):
    store = DynamoPlayerStore(table)
    with Stubber(table.meta.client) as stubber:
        stubber.add_response(
            "scan",
            {
                "Items": [_item("p50", 50), _item("p10", 10)],
                "Count": 2,
                "ScannedCount": 2,
                "LastEvaluatedKey": {"username": {"S": "p10"}},
            },
            {"TableName": "Players"},
        )
        stubber.add_response(
            "scan",
            {"Items": [_item("p90", 90), _item("p30", 30)], "Count": 2, "ScannedCount": 2},
            {"TableName": "Players", "ExclusiveStartKey": {"username": "p10"}},
        )
        players = store.top(3)
        stubber.assert_no_pending_responses()

    assert [p.score for p in players] == [90.0, 50.0, 30.0]


def test_top_with_score_index_queries_descending(table):
    store = DynamoPlayerStore(table, score_index="score-index")
    with Stubber(table.meta.client) as stubber:
        stubber.add_response(
            "query",
            {"Items": [_item("p90", 90), _item("p50", 50)], "Count": 2, "ScannedCount": 2},
            {
                "TableName": "Players",
                "IndexName": "score-index",
                "KeyConditionExpression": ANY,
                "ScanIndexForward": False,
                "Limit": 2,
            },
        )
        players = store.top(2)

    assert [p.username for p in players] == ["p90", "p50"]


def test_top_wraps_client_errors(table):
    store = DynamoPlayerStore(table)
    with Stubber(table.meta.client) as stubber:
        stubber.add_client_error("scan", service_error_code="InternalServerError")
        with pytest.raises(StorageError):
            store.top(10)


def test_build_store_selects_dynamodb():
    settings = Settings(
        storage_backend=BACKEND_DYNAMODB,
        dynamo_table="Scores",
        dynamo_score_index="by-score",
        aws_region="eu-west-1",
    )
    store = build_store(settings)
    assert isinstance(store, DynamoPlayerStore)
    assert store.table.name == "Scores"
    assert store.score_index == "by-score"


def _index_key(username, score):
    return {
        "username": {"S": username},
        "leaderboard": {"S": LEADERBOARD_PARTITION},
        "score": {"N": str(score)},
    }


def _index_query(limit, start=None):
    params = {
        "TableName": "Players",
        "IndexName": "score-index",
        "KeyConditionExpression": ANY,
        "ScanIndexForward": False,
        "Limit": limit,
    }
    if start is not None:
        params["ExclusiveStartKey"] = start
    return params


def test_top_with_score_index_follows_pages_and_settles_ties(table):
    store = DynamoPlayerStore(table, score_index="score-index")
    with Stubber(table.meta.client) as stubber:
        stubber.add_response(
            "query",
            {
                "Items": [_item("p90", 90), _item("p50", 50)],
                "Count": 2,
                "ScannedCount": 2,
                "LastEvaluatedKey": _index_key("p50", 50),
            },
            _index_query(3),
        )
        # Only one slot left, and the index hands back "zed" first among the 30s.
        stubber.add_response(
            "query",
            {
                "Items": [_item("zed", 30)],
                "Count": 1,
                "ScannedCount": 1,
                "LastEvaluatedKey": _index_key("zed", 30),
            },
            _index_query(1, {"username": "p50", "leaderboard": LEADERBOARD_PARTITION, "score": Decimal("50")}),
        )
        stubber.add_response(
            "query",
            {
                "Items": [_item("amy", 30), _item("bob", 20)],
                "Count": 2,
                "ScannedCount": 2,
                "LastEvaluatedKey": _index_key("bob", 20),
            },
            _index_query(
                dynamodb_module._TIE_PAGE_SIZE,
                {"username": "zed", "leaderboard": LEADERBOARD_PARTITION, "score": Decimal("30")},
            ),
        )
        players = store.top(3)
        stubber.assert_no_pending_responses()

    assert [p.username for p in players] == ["p90", "p50", "amy"]


def test_top_with_score_index_stops_when_index_is_exhausted(table):
    store = DynamoPlayerStore(table, score_index="score-index")
    with Stubber(table.meta.client) as stubber:
        stubber.add_response(
            "query",
            {"Items": [_item("kim", 5), _item("amy", 5)], "Count": 2, "ScannedCount": 2},
            _index_query(10),
        )
        players = store.top(10)
        stubber.assert_no_pending_responses()

    assert [p.username for p in players] == ["amy", "kim"]
