import pytest

from clanwarfare.errors import RecordParseError
from clanwarfare.mappers.entities import map_clans, map_member, map_members, map_modifiers

from helpers import make_clan, make_member, make_modifier


def test_map_clan():
    clan = map_clans([make_clan(100, "Alpha &amp;amp; Omega")])[0]

    assert clan.id == "100"
    assert clan.path == "/clans/100/"
    assert clan.name == "Alpha & Omega"
    assert clan.motto == "Onwards & upwards"
    assert clan.description == "Line one<br />Line two"
    assert clan.avatar.foreground.icon == "e2a3"
    assert clan.avatar.background.icon == "1f"
    assert clan.avatar.foreground.color == "#111111"


def test_clan_medals_and_totals():
    rec = make_clan(100, medalUnlocks=[
        {"Id": 1, "Tier": 2, "AwardedTo": "Alpha"},
        {"Id": 1, "Tier": 2, "AwardedTo": "Alpha"},
    ])
    clan = map_clans([rec])[0]
    assert len(clan.medals) == 1
    assert clan.medal_totals == {"total": 1, "2": 1}


def test_clan_without_group_id_fails():
    rec = make_clan(100)
    del rec["groupId"]
    with pytest.raises(RecordParseError):
        map_clans([rec])


def test_clans_payload_must_be_a_list():
    assert map_clans(None) == []
    with pytest.raises(RecordParseError):
        map_clans({"groupId": 1})


def test_member_who_played():
    member = map_member(make_member("1", 100))

    assert member.path == "/clans/100/1/"
    assert member.clan_id == "100"
    assert member.avatar.icon == "cc13.jpg"
    assert member.platforms[0].id == 2
    t = member.totals
    assert t.last_played == "2019-05-30"
    assert t.path == "/clans/100/1/"
    assert (t.games, t.wins, t.kills, t.assists, t.deaths) == (3, 1, 30, 10, 15)
    assert t.kd == 2.0
    assert t.kda == 2.33
    assert t.score == 3000
    assert t.ppg == 1000.0


def test_member_without_games_has_no_gameplay_fields():
    member = map_member(make_member("3", 200, games=0))
    doc = member.totals.doc()
    assert doc == {"lastPlayed": "2019-05-30"}
    assert member.totals.games is None


def test_member_never_seen():
    member = map_member(make_member("4", 200, currentScore=None))
    assert member.totals.last_played == "-1"


def test_member_default_avatar_is_suppressed():
    rec = make_member("1", 100, icon="https://www.bungie.net/img/profile/avatars/default_avatar.gif")
    assert map_member(rec).avatar.icon is None


def test_member_tags_and_past_events():
    rec = make_member(
        "1", 100,
        bonusUnlocks=[{"name": "Veteran"}, {"name": ""}],
        history=[{
            "eventId": 9,
            "results": {
                "eventData": {"name": "Spring", "scoringEndDate": "2019-04-01T00:00:00Z"},
                "gamesPlayed": 4, "gamesWon": 2, "totalKills": 40, "totalAssists": 8,
                "totalDeaths": 20, "totalScore": 400, "rankInClan": 2, "overallRank": 0,
                "bonusPoints1": {"shortName": "Sniper", "bonusPoints": 3},
            },
        }],
    )
    member = map_member(rec)

    assert [t.name for t in member.tags] == ["Veteran"]
    past = member.past_events[0]
    assert past.id == 9
    assert past.game.path == "/events/9/"
    assert past.game.end_date == "2019-04-01T00:00:00Z"
    assert past.rank == "2nd"
    assert past.overall == "N/A"
    assert past.ppg == 100.0
    assert past.bonus_columns == ["Sniper", "Bonus 2"]


def test_member_without_profile_id_fails():
    rec = make_member("1", 100)
    del rec["profileIdStr"]
    with pytest.raises(RecordParseError):
        map_members([rec])


def test_modifiers():
    mods = map_modifiers([
        make_modifier(1),
        make_modifier(2, "Double Trouble", scoringModifier=False, scoringBonus=0, multiplierBonus=2,
                      shortName="Double", createdBy="77"),
    ])

    assert mods[0].short_name == "Headshots"
    assert mods[0].label == "+5"
    assert mods[0].creator_id is None
    assert mods[1].short_name == "Double"
    assert mods[1].label == "x2"
    assert mods[1].creator_id == "77"


def test_modifier_bonus_keeps_its_number_type():
    mods = map_modifiers([make_modifier(1), make_modifier(2, "Half", scoringModifier=False,
                                                           scoringBonus=0, multiplierBonus=0.5)])
    assert mods[0].doc()["bonus"] == 5
    assert isinstance(mods[0].doc()["bonus"], int)
    assert mods[1].doc()["bonus"] == 0.5
