from __future__ import annotations

import pytest

from anime_renamer.models.entities import EpisodeType, ParsedFile, ParseFailure
from anime_renamer.services.parser import (
    FileParser,
    _is_episode_tag,
    _title_from_tags,
    clean_anime_name,
    detect_episode_type,
    extract_tmdb_id,
)


@pytest.fixture()
def parser() -> FileParser:
    return FileParser()


@pytest.mark.parametrize(
    "filename,name,episode",
    [
        ("[字幕组] 鬼灭之刃 28 [1080p].mkv", "鬼灭之刃", 28),
        ("鬼灭之刃 27.mkv", "鬼灭之刃", 27),
        ("孤独搖滾！- 01.mkv", "孤独搖滾！", 1),
        ("[DBD-RAWS]妖精的尾巴_S001[1080].mkv", "妖精的尾巴", 1),
        ("[字幕组]妖精的尾巴_S220[1080p].mkv", "妖精的尾巴", 220),
        ("进击的巨人 E220.mkv", "进击的巨人", 220),
        ("某番剧 EP01.mkv", "某番剧", 1),
        ("番剧名 第01话.mkv", "番剧名", 1),
        ("[Group] Show [1080] - 05.mkv", "Show", 5),
        ("[01] Some Show.mkv", "Some Show", 1),
        ("进击的巨人：最终季 - 05.mkv", "进击的巨人", 5),
        ("Show (2019) - 03.mkv", "Show", 3),
    ],
)
def test_parse_common_release_names(parser, filename, name, episode):
    parsed = parser.parse(filename)
    assert parsed is not None
    assert parsed.anime_name == name
    assert parsed.episode_number == episode


def test_parse_keeps_tags_and_extension(parser):
    parsed = parser.parse("[字幕组] 鬼灭之刃 28 [1080p].mkv")
    assert parsed == ParsedFile(
        anime_name="鬼灭之刃",
        episode_number=28,
        season_number=None,
        episode_type=EpisodeType.NORMAL,
        tags=("字幕组", "1080p"),
        extension="mkv",
        is_already_formatted=False,
    )


def test_parse_without_extension(parser):
    parsed = parser.parse("Show - 01")
    assert parsed is not None
    assert parsed.extension == ""
    assert parsed.anime_name == "Show"


def test_sxey_sets_season_and_episode(parser):
    parsed = parser.parse("番剧名 S02E220.mkv")
    assert parsed is not None
    assert parsed.anime_name == "番剧名"
    assert parsed.season_number == 2
    assert parsed.episode_number == 220


def test_one_punch_man_total_count_is_ignored(parser):
    filename = "[LoliHouse] One-Punch Man S3 - 04(28) [WebRip 1080p HEVC-10bit AAC SRTx2].mkv"
    stem = filename[: -len(".mkv")]

    season = parser.extract_season(stem)
    assert season is not None and season.value == 3
    episode = parser.extract_episode(stem, season)
    assert episode is not None and episode.value == 4

    parsed = parser.parse(filename)
    assert parsed is not None
    assert parsed.season_number == 3
    assert parsed.episode_number == 4
    assert parsed.anime_name == "One-Punch Man"


def test_multi_tag_release_uses_longest_title_tag(parser):
    parsed = parser.parse(
        "[爱恋字幕社][1月新番][在地下城寻求邂逅是否搞错了什么 IV 深章 灾厄篇]"
        "[Dungeon ni Deai wo Motomeru no wa Machigatteiru Darou ka S4][22][1080P][MP4][繁中].mkv"
    )
    assert parsed is not None
    assert parsed.season_number == 4
    assert parsed.episode_number == 22
    # 58 ASCII bytes lose to the Chinese tag's 65 UTF-8 bytes
    assert parsed.anime_name == "在地下城寻求邂逅是否搞错了什么 深章 灾厄篇"


def test_title_tag_length_counts_bytes():
    assert _title_from_tags(["Abcdefg", "鬼灭之刃"], 2, "") == "鬼灭之刃"
    assert _title_from_tags(["字幕组", "中文", "Abcdef"], 3, "") == "中文"


def test_oversized_numeric_tag_is_not_an_episode_tag():
    assert _is_episode_tag("05")
    assert _is_episode_tag("4294967295")
    assert not _is_episode_tag("4294967296")
    assert not _is_episode_tag("99999999999")
    assert not _is_episode_tag("1080")
    assert not _is_episode_tag("０５")


def test_season_word_digit_blocks_delimiter_episode(parser):
    # the catch-all only offers its leftmost number, which is the season
    assert parser.parse_detailed("[Group] Show Season 2 - 05 [1080p].mkv").reason == "no episode number"
    season = parser.extract_season("Show Season 2 - 05")
    assert season is not None and season.value == 2
    assert parser.extract_episode("Show Season 2 - 05", season) is None


def test_resolution_tag_is_never_the_episode(parser):
    season = parser.extract_season("Show S3 [1080p] 04")
    assert season is not None and season.value == 3
    episode = parser.extract_episode("Show S3 [1080p] 04", season)
    assert episode is not None
    assert episode.value == 4

    # [1080] is excluded and nothing else offers a number
    assert parser.parse_detailed("[Grp][Show][1080][05].mkv").reason == "no episode number"


def test_equal_length_title_tags_pick_the_first(parser):
    parsed = parser.parse("[AAAA][BBBB][03].mkv")
    assert parsed is not None
    assert parsed.anime_name == "AAAA"
    assert parsed.episode_number == 3


def test_subgroup_only_tags_fall_back_to_joined_tags(parser):
    parsed = parser.parse("[字幕组][01].mkv")
    assert parsed is not None
    assert parsed.anime_name == "字幕组"


@pytest.mark.parametrize(
    "filename,episode_type",
    [
        ("[字幕组] 进击的巨人 OVA 01.mkv", EpisodeType.OVA),
        ("番剧名 OAD 02.mkv", EpisodeType.OAD),
        ("[字幕组] 番剧 SP 01 [1080p].mkv", EpisodeType.SPECIAL),
        ("番剧名 特典 01.mkv", EpisodeType.SPECIAL),
        ("[字幕组] 鬼灭之刃 28 [1080p].mkv", EpisodeType.NORMAL),
    ],
)
def test_episode_type_detection(parser, filename, episode_type):
    parsed = parser.parse(filename)
    assert parsed is not None
    assert parsed.episode_type is episode_type


def test_special_keywords_are_removed_from_title(parser):
    assert parser.parse("[字幕组] 进击的巨人 OVA 01.mkv").anime_name == "进击的巨人"
    assert parser.parse("[字幕组] 番剧 SP 01 [1080p].mkv").anime_name == "番剧"


def test_movie_without_number_is_a_failure(parser):
    assert parser.parse("进击的巨人 剧场版.mkv") is None
    assert parser.parse_detailed("进击的巨人 剧场版.mkv") == ParseFailure(
        filename="进击的巨人 剧场版.mkv", reason="no episode number"
    )
    assert detect_episode_type("进击的巨人 剧场版") is EpisodeType.MOVIE


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Show OVA SP 01", EpisodeType.OVA),
        ("Show Movie OVA 01", EpisodeType.MOVIE),
        ("Show OAD OVA 01", EpisodeType.OAD),
        ("Show Special 01", EpisodeType.SPECIAL),
        ("Gekijouban Show", EpisodeType.MOVIE),
        ("Spy Family 01", EpisodeType.NORMAL),
    ],
)
def test_episode_type_precedence(text, expected):
    assert detect_episode_type(text) is expected


def test_already_formatted_flag(parser):
    assert parser.parse("鬼灭之刃 S02E05.mkv").is_already_formatted is True
    dotted = parser.parse("Show.S02E05.mkv")
    assert dotted is not None
    assert dotted.is_already_formatted is False
    assert parser.parse("鬼灭之刃 27.mkv").is_already_formatted is False


def test_failure_reasons(parser):
    assert parser.parse_detailed("").reason == "empty filename"
    assert parser.parse_detailed("- 01.mkv").reason == "empty title"
    assert parser.parse_detailed("no number here.mkv").reason == "no episode number"


@pytest.mark.parametrize(
    "filename",
    ["", "[", "]", ".mkv", "[[[[", "第集", "S01E", "x" * 10000, "[" * 2000 + "01", "- " * 500, "\udcff.mkv", "🎬 01.mkv"],
)
def test_parse_never_raises(parser, filename):
    result = parser.parse_detailed(filename)
    assert isinstance(result, (ParsedFile, ParseFailure))


@pytest.mark.parametrize(
    "raw",
    [
        "[字幕组] 鬼灭之刃 [1080p]",
        "Title S1-",
        "  Show Season 2 (2019) ",
        "进击的巨人：最终季",
        "-_.Show OVA_",
        "[a][b]",
        "Title II",
    ],
)
def test_clean_is_idempotent(raw):
    once = clean_anime_name(raw)
    assert clean_anime_name(once) == once


def test_clean_strips_season_markers():
    assert clean_anime_name("Title S1-") == "Title"
    assert clean_anime_name("Show Season 2") == "Show"
    assert clean_anime_name("进击的巨人 第3季") == "进击的巨人"
    assert clean_anime_name("Title IV") == "Title"


def test_parsed_names_are_stable_under_cleaning(parser):
    for filename in ("[字幕组] 鬼灭之刃 28 [1080p].mkv", "[LoliHouse] One-Punch Man S3 - 04(28) [WebRip 1080p].mkv"):
        name = parser.parse(filename).anime_name
        assert clean_anime_name(name) == name


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/anime/Frieren {tmdb-209867}/ep01.mkv", 209867),
        ("/anime/[tmdbid=1234]", 1234),
        ("/anime/Show TMDB: 42", 42),
        ("/anime/Show tmdb_7", 7),
        ("/anime/Show", None),
        ("", None),
    ],
)
def test_extract_tmdb_id(path, expected):
    assert extract_tmdb_id(path) == expected
