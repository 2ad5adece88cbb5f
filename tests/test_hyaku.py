import csv

import pytest

from groupbot import hyaku

HEADER = ["番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな"]


def _write(path, rows):
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(HEADER)
        writer.writerows(rows)
    return path


def _rows(n=100):
    return [[str(i), f"poet{i}", f"k{i}", f"s{i}", f"kk{i}", f"sk{i}"] for i in range(1, n + 1)]


def test_load_poems(tmp_path):
    poems = hyaku.load_poems(_write(tmp_path / "h.csv", _rows()))
    assert len(poems) == 100
    assert poems[0].number == "1"
    assert poems[99].poet == "poet100"
    assert [p.number for p in poems] == [str(i) for i in range(1, 101)]


def test_poem_str():
    poem = hyaku.Poem("1", "poet", "kami", "shimo", "kk", "sk")
    assert str(poem).split("\n") == [
        "●番号：1",
        "◉歌人：poet",
        "○上の句：kami",
        "○下の句：shimo",
        "◎上の句ひらがな：kk",
        "◎下の句ひらがな：sk",
        "",
    ]


def test_wrong_count(tmp_path):
    with pytest.raises(ValueError, match="invalid csvfile"):
        hyaku.load_poems(_write(tmp_path / "h.csv", _rows(99)))


def test_wrong_order(tmp_path):
    rows = _rows()
    rows[0], rows[1] = rows[1], rows[0]
    with pytest.raises(ValueError, match="invalid csvfile"):
        hyaku.load_poems(_write(tmp_path / "h.csv", rows))


def test_wrong_width(tmp_path):
    rows = _rows()
    rows[5] = rows[5][:5]
    with pytest.raises(ValueError, match="invalid csvfile"):
        hyaku.load_poems(_write(tmp_path / "h.csv", rows))


def test_image_urls():
    jpg, png = hyaku.image_urls(7)
    assert jpg == hyaku.BED + "img/007.jpg"
    assert png == hyaku.BED + "img/007.png"


@pytest.mark.parametrize("number", [0, 101, -3])
def test_image_urls_out_of_range(number):
    with pytest.raises(ValueError, match="超出范围"):
        hyaku.image_urls(number)