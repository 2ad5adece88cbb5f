import sqlite3
from datetime import date

import pytest

from groupbot.omikuji import BED, KujiStore, draw_number, image_urls


def test_draw_number_range_and_stable():
    day = date(2022, 6, 13)
    for uid in range(1, 200):
        n = draw_number(uid, day)
        assert 1 <= n <= 100
        assert draw_number(uid, day) == n


def test_image_urls():
    front, back = image_urls(42)
    assert front == BED % (42, 0)
    assert back == BED % (42, 1)
    assert front.endswith("42_0.jpg")


def test_store_text(tmp_path):
    path = tmp_path / "kuji.db"
    with KujiStore(path):
        pass
    con = sqlite3.connect(path)
    con.execute("INSERT INTO kuji (id, text) VALUES (?, ?)", (5, "大吉"))
    con.commit()
    con.close()
    with KujiStore(path) as store:
        assert store.text(5) == "大吉"
        with pytest.raises(LookupError):
            store.text(6)