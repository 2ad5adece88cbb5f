from groupbot.nsfw import Scores, auto_judge, judge


def test_judge_neutral():
    assert judge(Scores(neutral=0.9)) == "普通哦"


def test_judge_low_neutral_is_drawing():
    assert judge(Scores(neutral=0.1, porn=0.8)) == "二次元 porn"


def test_judge_three_dimensional():
    assert judge(Scores(neutral=0.3, sexy=0.5)) == "三次元 hso"


def test_judge_all_tags():
    result = judge(Scores(drawings=0.5, hentai=0.5, porn=0.5, sexy=0.5))
    assert result == "二次元 hentai porn hso"


def test_auto_judge_neutral_silent():
    assert auto_judge(Scores(neutral=0.9, porn=0.9)) is None


def test_auto_judge_no_tags_silent():
    assert auto_judge(Scores(drawings=0.9)) is None


def test_auto_judge_tags():
    assert auto_judge(Scores(porn=0.9)) == "三次元 porn"
    assert auto_judge(Scores(drawings=0.9, hentai=0.9)) == "二次元 hentai"