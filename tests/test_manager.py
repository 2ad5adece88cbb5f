import random

import pytest

from groupbot.manager import (
    ManagerStore,
    check_new_user,
    gist_url,
    make_arithmetic_challenge,
    parse_ban_minutes,
    parse_join_answer,
    pick_lucky_member,
    render_welcome,
    toggle_flag,
    unescape_brackets,
)


@pytest.fixture
def store(tmp_path):
    s = ManagerStore(tmp_path / "config.db")
    yield s
    s.close()


def test_ban_units_scale_consistently():
    assert parse_ban_minutes(2, "小时") == parse_ban_minutes(120, "分钟")
    assert parse_ban_minutes(1, "天") == parse_ban_minutes(24, "小时")
    assert parse_ban_minutes(3, "h") == parse_ban_minutes(3, "小时")
    assert parse_ban_minutes(7, "unknown") == 7


def test_ban_capped_below_a_month():
    assert parse_ban_minutes(100, "天") == 43199
    assert parse_ban_minutes(43200, "分钟") == 43199


def test_render_welcome_placeholders():
    out = render_welcome("{at}{nickname}|{uid}|{gid}|{groupname}", 123, "nick", 456, "grp")
    assert out == "[CQ:at,qq=123]nick|123|456|grp"
    assert "nk=123" in render_welcome("{avatar}", 123, "n", 1, "g")


def test_unescape_brackets():
    assert unescape_brackets("&#91;CQ:face,id=1&#93;") == "[CQ:face,id=1]"


def test_pick_lucky_member_from_recent_ten():
    members = [{"user_id": i, "last_sent_time": i} for i in range(15)]
    rng = random.Random(0)
    for _ in range(50):
        picked = pick_lucky_member(members, rng)
        assert picked["last_sent_time"] >= 5


def test_pick_lucky_member_empty():
    with pytest.raises(ValueError):
        pick_lucky_member([], random.Random(1))


def test_toggle_flag_round_trip():
    data = 0b1010
    on = toggle_flag(data, "开启", 0x10)
    assert on & 0x10 == 0x10
    assert toggle_flag(on, "关闭", 0x10) == data
    assert toggle_flag(data, "启用", 1) & 1 == 1
    assert toggle_flag(toggle_flag(data, "打开", 1), "禁用", 1) == data


def test_toggle_flag_unknown_option():
    with pytest.raises(ValueError):
        toggle_flag(0, "maybe", 1)


def test_parse_join_answer():
    assert parse_join_answer("问题：xx\n答案：alice/abc") == ("alice", "abc")
    with pytest.raises(ValueError):
        parse_join_answer("答案：/abc")
    with pytest.raises(ValueError):
        parse_join_answer("答案：noslash")


def test_arithmetic_challenge():
    c = make_arithmetic_challenge(random.Random(3))
    assert 0 <= c.a < 100 and 0 <= c.b < 100
    assert c.check(str(c.answer)) is True
    assert c.check(" ".join(str(c.answer))) is True
    assert c.check(str(c.answer + 1)) is False
    assert c.check("abc") is None
    assert "bot" in c.question("bot")


def test_gist_url():
    assert gist_url("alice", "h", 12345) == (
        "https://gist.githubusercontent.com/alice/h/raw/827ccb0eea8a706c4c34a16891f84e7b"
    )


def test_store_messages(store):
    assert store.find_message("welcome", 1) is None
    store.set_message("welcome", 1, "hi")
    store.set_message("farewell", 1, "bye")
    assert store.find_message("welcome", 1) == "hi"
    assert store.find_message("farewell", 1) == "bye"
    store.set_message("welcome", 1, "hello")
    assert store.find_message("welcome", 1) == "hello"


def test_store_rejects_unknown_table(store):
    with pytest.raises(ValueError):
        store.set_message("other", 1, "x")


def test_store_persists(tmp_path):
    path = tmp_path / "db.sqlite"
    with ManagerStore(path) as s:
        s.add_member(10, "bob")
        s.set_message("welcome", 2, "w")
    with ManagerStore(path) as s:
        assert s.has_member("bob")
        assert not s.has_member("carol")
        assert s.find_message("welcome", 2) == "w"


def test_check_new_user_accepts_fresh_timestamp(store):
    seen = []

    def fetch(url):
        seen.append(url)
        return b"1000000"

    ok, reason = check_new_user(store, 10, 12345, "alice", "h", fetch, now=1000100)
    assert (ok, reason) == (True, "")
    assert seen == [gist_url("alice", "h", 12345)]
    assert store.has_member("alice")
    again = check_new_user(store, 11, 12345, "alice", "h", fetch, now=1000100)
    assert again == (False, "该github用户已入群")


def test_check_new_user_timeout(store):
    result = check_new_user(store, 1, 2, "u", "h", lambda url: b"1000", now=1000 + 600)
    assert result == (False, "时间戳超时")
    assert not store.has_member("u")


def test_check_new_user_bad_format(store):
    result = check_new_user(store, 1, 2, "u", "h", lambda url: b"abc", now=0)
    assert result == (False, "时间戳格式错误: abc")


def test_check_new_user_connection_error(store):
    def fetch(url):
        raise ConnectionError("down")

    ok, reason = check_new_user(store, 1, 2, "u", "h", fetch, now=0)
    assert ok is False
    assert reason.startswith("无法连接到gist: ")