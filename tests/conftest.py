"""Shared fixtures: a small PUBG match payload and a telemetry event factory."""

import copy
from datetime import datetime, timedelta, timezone

import pytest

from pewstats_match_reports.processors.match_parser import parse_match_document


MATCH_ID = "0a1b2c3d-0000-4000-8000-00000000abcd"
TELEMETRY_URL = "https://telemetry-cdn.pubg.com/bluehole-pubg/steam/2024/01/01/12/00/abc-telemetry.json"
MATCH_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _participant(participant_id, name, **stats):
    base = {
        "name": name,
        "playerId": f"account.{name.lower()}",
        "kills": 0,
        "assists": 0,
        "damageDealt": 0,
        "headshotKills": 0,
        "DBNOs": 0,
        "timeSurvived": 0,
        "boosts": 0,
        "heals": 0,
        "revives": 0,
        "killPlace": 0,
        "winPlace": 0,
        "roadKills": 0,
        "teamKills": 0,
        "longestKill": 0,
        "walkDistance": 0,
        "rideDistance": 0,
        "swimDistance": 0,
        "weaponsAcquired": 0,
        "vehicleDestroys": 0,
    }
    base.update(stats)
    return {"type": "participant", "id": participant_id, "attributes": {"stats": base}}


def _roster(roster_id, team_id, rank, won, participant_ids):
    return {
        "type": "roster",
        "id": roster_id,
        "attributes": {"stats": {"teamId": team_id, "rank": rank}, "won": won},
        "relationships": {
            "participants": {"data": [{"type": "participant", "id": pid} for pid in participant_ids]}
        },
    }


MATCH_PAYLOAD = {
    "data": {
        "type": "match",
        "id": MATCH_ID,
        "attributes": {
            "createdAt": "2024-01-01T12:00:00Z",
            "mapName": "Baltic_Main",
            "gameMode": "squad-fpp",
            "duration": 1830,
            "matchType": "official",
            "isCustomMatch": False,
            "shardId": "steam",
        },
        "relationships": {"assets": {"data": [{"type": "asset", "id": "asset-1"}]}},
    },
    "included": [
        _participant(
            "p1",
            "PlayerOne",
            kills=3,
            assists=1,
            damageDealt=310.6,
            headshotKills=1,
            DBNOs=2,
            timeSurvived=1500.4,
            boosts=2,
            heals=3,
            revives=1,
            killPlace=2,
            winPlace=1,
            longestKill=210.5,
            walkDistance=2500.4,
            rideDistance=1200.5,
            swimDistance=10.2,
            weaponsAcquired=6,
        ),
        _participant("p2", "Teammate", kills=1, assists=2, damageDealt=150.0, timeSurvived=1400, winPlace=1),
        _participant("p3", "Placeholder", winPlace=1),
        _participant("p4", "EnemyOne", kills=5, damageDealt=600.4, timeSurvived=1200, winPlace=2),
        _participant("p5", "EnemyTwo", kills=3, damageDealt=280.5, timeSurvived=1100, winPlace=2),
        _roster("r1", 1, 1, "true", ["p1", "p2", "p3"]),
        _roster("r2", 2, 2, "false", ["p4", "p5"]),
        {"type": "asset", "id": "asset-1", "attributes": {"name": "telemetry", "URL": TELEMETRY_URL}},
    ],
}


def iso(ms):
    """Telemetry timestamp for an offset (ms) from the match start."""
    moment = MATCH_START + timedelta(milliseconds=ms)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class EventFactory:
    """Builds raw telemetry dicts shaped like the PUBG CDN payload."""

    @staticmethod
    def damage(attacker, victim, damage, t=0, weapon="WeapHK416_C", reason="TorsoShot"):
        return {
            "_T": "LogPlayerTakeDamage",
            "_D": iso(t),
            "attacker": {"name": attacker} if attacker else None,
            "victim": {"name": victim},
            "damage": damage,
            "damageCauserName": weapon,
            "damageReason": reason,
            "damageTypeCategory": "Damage_Gun",
        }

    @staticmethod
    def kill(killer, victim, t=0, weapon="WeapHK416_C", headshot=False):
        return {
            "_T": "LogPlayerKillV2",
            "_D": iso(t),
            "killer": {"name": killer},
            "finisher": {"name": killer},
            "victim": {"name": victim},
            "killerDamageInfo": {
                "damageCauserName": weapon,
                "damageReason": "HeadShot" if headshot else "TorsoShot",
                "distance": 4500.0,
            },
        }

    @staticmethod
    def kill_v1(killer, victim, t=0, weapon="WeapAK47_C", headshot=False):
        return {
            "_T": "LogPlayerKill",
            "_D": iso(t),
            "killer": {"name": killer},
            "victim": {"name": victim},
            "damageCauserName": weapon,
            "damageReason": "HeadShot" if headshot else "ArmShot",
        }

    @staticmethod
    def groggy(attacker, victim, t=0, weapon="WeapHK416_C"):
        return {
            "_T": "LogPlayerMakeGroggy",
            "_D": iso(t),
            "attacker": {"name": attacker},
            "victim": {"name": victim},
            "damageCauserName": weapon,
            "damageReason": "TorsoShot",
        }

    @staticmethod
    def position(name, x, y, t=0, z=0.0, vehicle=False):
        return {
            "_T": "LogPlayerPosition",
            "_D": iso(t),
            "character": {"name": name, "location": {"x": x, "y": y, "z": z}},
            "vehicle": {"vehicleId": "Dacia_A_01_v2_C"} if vehicle else None,
        }

    @staticmethod
    def attack(attacker, t=0, item="Item_Weapon_HK416_C"):
        return {
            "_T": "LogPlayerAttack",
            "_D": iso(t),
            "attacker": {"name": attacker},
            "weapon": {"itemId": item},
        }


@pytest.fixture
def match_payload():
    """Fresh copy of the sample match payload."""
    return copy.deepcopy(MATCH_PAYLOAD)


@pytest.fixture
def match_document(match_payload):
    return parse_match_document(match_payload)


@pytest.fixture
def events():
    return EventFactory()


@pytest.fixture
def sample_telemetry(events):
    """Telemetry for PlayerOne: two quick kills, damage both ways, some movement."""
    return [
        {"_T": "LogMatchStart", "_D": iso(0)},
        events.position("PlayerOne", 0, 0, t=1000),
        events.damage("PlayerOne", "EnemyOne", 45.5, t=60_000),
        events.groggy("PlayerOne", "EnemyOne", t=60_500),
        events.kill("PlayerOne", "EnemyOne", t=62_000, headshot=True),
        events.damage("EnemyTwo", "PlayerOne", 30.2, t=63_000, weapon="WeapAK47_C"),
        events.damage("PlayerOne", "EnemyTwo", 80.0, t=64_000),
        events.kill("PlayerOne", "EnemyTwo", t=65_000),
        events.position("PlayerOne", 30000, 40000, t=120_000),
        events.position("PlayerOne", 30000, 100000, t=180_000, vehicle=True),
        events.damage("EnemyOne", "Teammate", 99.0, t=200_000),
    ]
