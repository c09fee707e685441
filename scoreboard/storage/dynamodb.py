"""DynamoDB backend: one item per player keyed by ``username``."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import StorageError
from ..core.time import isoformat_z, parse_iso
from ..models import Player

logger = logging.getLogger(__name__)

# Constant partition value for the optional score index.
LEADERBOARD_PARTITION = "LEADERBOARD"

# Page size used when reading past the limit to collect equal scores.
_TIE_PAGE_SIZE = 100

_UPSERT_EXPRESSION = (
    "SET #score = :score, #updatedAt = :now, "
    "#createdAt = if_not_exists(#createdAt, :now), #leaderboard = :leaderboard"
)
_UPSERT_NAMES = {
    "#score": "score",
    "#updatedAt": "updatedAt",
    "#createdAt": "createdAt",
    "#leaderboard": "leaderboard",
}


def _item_to_player(item: Dict[str, Any]) -> Player:
    updated_at = parse_iso(item["updatedAt"])
    created_raw = item.get("createdAt")
    return Player(
        username=item["username"],
        score=float(item.get("score", 0)),
        created_at=parse_iso(created_raw) if created_raw else updated_at,
        updated_at=updated_at,
    )


def _ranking_key(player: Player):
    return (-player.score, player.username)


class DynamoPlayerStore:
    """Player storage on a boto3 DynamoDB ``Table`` resource."""

    def __init__(self, table: Any, score_index: Optional[str] = None) -> None:
        self.table = table
        self.score_index = score_index

    def prepare(self, reset: bool = False) -> None:
        if reset:
            logger.warning("DB_RESET is ignored by the DynamoDB backend")
        try:
            self.table.load()
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("DynamoDB table is not reachable") from exc
        logger.info("DynamoDB backend ready (table=%s)", self.table.name)

    def upsert(self, username: str, score: float, now: datetime) -> Player:
        try:
            response = self.table.update_item(
                Key={"username": username},
                UpdateExpression=_UPSERT_EXPRESSION,
                ExpressionAttributeNames=_UPSERT_NAMES,
                ExpressionAttributeValues={
                    ":score": Decimal(str(score)),
                    ":now": isoformat_z(now),
                    ":leaderboard": LEADERBOARD_PARTITION,
                },
                ReturnValues="ALL_NEW",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Could not save player") from exc
        return _item_to_player(response["Attributes"])

    def get(self, username: str) -> Optional[Player]:
        try:
            response = self.table.get_item(Key={"username": username})
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Could not load player") from exc
        item = response.get("Item")
        if not item:
            return None
        return _item_to_player(item)

    def top(self, limit: int) -> List[Player]:
        try:
            if self.score_index:
                return self._query_index(limit)
            return self._scan_sorted(limit)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Could not list players") from exc

    def _query_index(self, limit: int) -> List[Player]:
        players: List[Player] = []
        params: Dict[str, Any] = {
            "IndexName": self.score_index,
            "KeyConditionExpression": Key("leaderboard").eq(LEADERBOARD_PARTITION),
            "ScanIndexForward": False,
            "Limit": limit,
        }
        while True:
            response = self.table.query(**params)
            players.extend(_item_to_player(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            # Keep reading while the index may still hold ties for the last place.
            if len(players) >= limit and players[-1].score < players[limit - 1].score:
                break
            params["ExclusiveStartKey"] = last_key
            params["Limit"] = max(limit - len(players), 0) or _TIE_PAGE_SIZE
        players.sort(key=_ranking_key)
        return players[:limit]

    def _scan_sorted(self, limit: int) -> List[Player]:
        # Scans are unordered; read every page and rank in-process.
        players: List[Player] = []
        params: Dict[str, Any] = {}
        while True:
            response = self.table.scan(**params)
            players.extend(_item_to_player(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            params["ExclusiveStartKey"] = last_key
        players.sort(key=_ranking_key)
        return players[:limit]

    def close(self) -> None:
        self.table.meta.client.close()


__all__ = ["DynamoPlayerStore", "LEADERBOARD_PARTITION"]
