"""Upstream payload builders and a fake API transport shared by the tests."""

import json
from collections import Counter
from datetime import datetime, timezone

import httpx

RUN_TIME = datetime(2019, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
UPDATED_DATE = "2019-06-01T12:00:00Z"
API = "https://api.test"
BUNGIE = "https://bungie.test/Platform"


def make_clan(group_id, name="Clan", **overrides):
    clan = {
        "groupId": group_id,
        "name": name,
        "tag": "TAG",
        "motto": "Onwards &amp; upwards",
        "description": "Line one\r\nLine two",
        "backgroundColor": "#000000",
        "emblemColor1": "#111111",
        "emblemColor2": "#222222",
        "foregroundIcon": "/common/destiny2_content/icons/cb_decal_square_e2a3.png",
        "backgroundIcon": "/common/destiny2_content/icons/cb_background_1f.png",
        "medalUnlocks": [],
    }
    clan.update(overrides)
    return clan


def make_member(profile_id, group_id, games=3, **overrides):
    member = {
        "profileIdStr": profile_id,
        "groupId": group_id,
        "name": f"Member {profile_id}",
        "icon": "https://www.bungie.net/img/profile/avatars/cc13.jpg",
        "membershipType": 2,
        "bonusUnlocks": [],
        "medalUnlocks": [],
        "currentScore": {
            "lastSeen": "2019-05-30T18:00:00Z",
            "gamesPlayed": games,
            "gamesWon": 1 if games else 0,
            "kills": 30,
            "assists": 10,
            "deaths": 15,
            "totalScore": 3000,
        },
    }
    member.update(overrides)
    return member


def make_event(event_id, tense, start, end, **overrides):
    event = {
        "eventId": event_id,
        "name": f"Event {event_id}",
        "description": "Fight!",
        "sponsoredBy": "Sponsor",
        "startTime": start,
        "scoringEndTime": end,
        "eventTense": tense,
        "modifiers": [{"id": 1}],
    }
    event.update(overrides)
    return event


def make_modifier(modifier_id, name="Headshots Only", **overrides):
    modifier = {
        "id": modifier_id,
        "name": name,
        "shortName": None,
        "description": "Precision kills only",
        "scoringModifier": True,
        "scoringBonus": 5,
        "multiplierBonus": 0,
        "createdBy": "",
    }
    modifier.update(overrides)
    return modifier


def make_leaderboard_row(member_id, clan_id, games=2, last_checked="2019-06-01T10:00:00Z", **overrides):
    row = {
        "idStr": member_id,
        "clanId": clan_id,
        "gamesPlayed": games,
        "gamesWon": 1,
        "kills": 20,
        "assists": 4,
        "deaths": 10,
        "totalScore": 200,
        "lastChecked": last_checked,
        "bonusPoints1": {"shortName": "Sniper", "bonusPoints": 3},
        "bonusPoints2": {"shortName": "TBC", "bonusPoints": 0},
    }
    row.update(overrides)
    return row


def last_updated(**groups):
    return {"endpoints": groups}


DEFAULT_TIMES = {
    "Clan": {"GetAllClans": "t1", "GetAllMembers": "t1"},
    "Tournament": {"GetAllEvents": "t1"},
    "Component": {"GetAllModifiers": "t1", "GetAllMedals": "t1", "GetAllClanMedals": "t1"},
    "Leaderboard": {
        "GetLeaderboard": "t1",
        "GetClanLeaderboard": "t1",
        "GetAllPlayersHistory": "t1",
        "GetPreviousClanLeaderboard": "t1",
    },
}


def scenario_payloads():
    """2 clans, 3 members (one without games), a current and a started 'future' event."""
    return {
        "Component/GetLastUpdatedTimes": last_updated(**DEFAULT_TIMES),
        "Clan/GetAllClans": [make_clan(100, "Alpha"), make_clan(200, "Bravo")],
        "Clan/GetAllMembers": [
            make_member("1", 100),
            make_member("2", 100),
            make_member("3", 200, games=0),
        ],
        "Event/GetAllEvents": [
            make_event(10, "Current", "2019-05-25T00:00:00Z", "2019-06-05T00:00:00Z"),
            make_event(11, "Future", "2019-06-01T00:00:00Z", "2019-06-10T00:00:00Z"),
            make_event(130, "Current", "2019-05-25T00:00:00Z", "2019-06-05T00:00:00Z"),
        ],
        "Component/GetAllModifiers": [make_modifier(1)],
        "Component/GetAllMedals": [{"Id": 7, "Name": "Ace", "Tier": 2, "AwardedTo": "Member 1"}],
        "Component/GetAllClanMedals": [{"MedalId": 8, "Name": "Champions", "AwardedTo": "Alpha"}],
        "Leaderboard/GetLeaderboard": {
            "largeLeaderboard": [{"groupId": 100, "name": "Alpha", "rank": 1, "score": 500}],
            "smallLeaderboard": [],
        },
        "Leaderboard/GetClanLeaderboard": [
            make_leaderboard_row("1", 100),
            make_leaderboard_row("2", 100, last_checked="2019-06-01T11:00:00Z"),
            make_leaderboard_row("3", 200, games=0),
        ],
        "Leaderboard/GetAllPlayersHistory": {
            "matchHistorySize": 10,
            "history": [
                {"memberShipIdStr": "1", "pgcrId": 555, "gameWon": True, "gameType": "Control",
                 "map": "Altar", "datePlayed": "2019-05-31T20:00:00Z", "kills": 12, "assists": 3,
                 "deaths": 4, "totalScore": 120, "bonusPoints1": 2, "bonusPoints2": 0},
                {"memberShipIdStr": "1", "pgcrId": 556, "gameWon": False, "gameType": "Clash",
                 "map": "Bannerfall", "datePlayed": "2019-05-31T21:00:00Z", "kills": 8, "assists": 1,
                 "deaths": 9, "totalScore": 60, "bonusPoints1": 0, "bonusPoints2": 0},
            ],
        },
        "Leaderboard/GetPreviousClanLeaderboard": [
            {"eventId": 9, "leaderboardList": [make_leaderboard_row("2", 100, last_checked="2019-05-20T11:00:00Z")]},
        ],
    }


class FakeUpstream:
    """httpx transport serving canned payloads by endpoint, counting every call."""

    def __init__(self, payloads=None, fail=()):
        self.payloads = dict(payloads or {})
        self.fail = set(fail)
        self.calls = Counter()
        self.requests = []

    def endpoint(self, request):
        url = str(request.url)
        for base in (API, BUNGIE):
            if url.startswith(base):
                return url[len(base):].strip("/")
        return request.url.path.strip("/")

    def handler(self, request):
        endpoint = self.endpoint(request)
        self.calls[endpoint] += 1
        self.requests.append(request)
        if endpoint in self.fail:
            return httpx.Response(500, json={"error": "boom"})
        if endpoint not in self.payloads:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, content=json.dumps(self.payloads[endpoint]).encode(),
                              headers={"content-type": "application/json"})

    def transport(self):
        return httpx.MockTransport(self.handler)
