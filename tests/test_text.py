"""
Tests for speech text normalization.
"""

from joypet_relay.text import normalize


class TestNormalize:
    def test_removes_whitespace(self):
        assert normalize(" かわ いい\tね\n") == "かわいいね"
        assert normalize("かわ　いい") == "かわいい"

    def test_removes_sentence_punctuation(self):
        assert normalize("かわいいね。") == "かわいいね"
        assert normalize("タロ！") == "たろ"
        assert normalize("おいで、くろ？") == "おいでくろ"
        assert normalize("Good boy!") == "goodboy"

    def test_folds_case_and_width(self):
        assert normalize("TARO") == "taro"
        assert normalize("ＴＡＲＯ") == "taro"

    def test_folds_katakana_to_hiragana(self):
        """Katakana and hiragana spellings of a name compare equal."""
        assert normalize("タロ") == normalize("たろ")
        assert normalize("ウサコ") == "うさこ"
        # Half-width katakana
        assert normalize("ﾀﾛ") == "たろ"

    def test_keeps_long_vowel_mark_and_kanji(self):
        assert normalize("タロー") == "たろー"
        assert normalize("可愛い") == "可愛い"

    def test_sound_marks_recombine(self):
        """A sound mark separated from its kana by removed characters joins it."""
        assert normalize("か゛") == "が"
        assert normalize("か ゙") == "が"
        assert normalize("か。゙") == "が"
        assert normalize("ハ　゚") == "ぱ"

    def test_idempotent(self):
        samples = [
            "タロ、かわいいね！",
            "ＵＳＡＫＯ　おいで。",
            "ﾀﾛｰ...",
            "Kuro ist SÜSS",
            "",
            "か゛",
            "か ゙",
            "か。゙",
            "ハ　゚",
        ]
        for sample in samples:
            once = normalize(sample)
            assert normalize(once) == once
