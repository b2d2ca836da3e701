# community_app/engine/test_normalizer.py
import pytest
from community_app.engine.normalizer import normalize

@pytest.mark.parametrize("text", [
    "ABC", "abc", "  ＡＢＣ１２３  ", "ぷろぐらみんぐ", "プログラミング", "映画研究会", "", "   ", "Ｍｉｘｅｄ ひらがな ｶﾀｶﾅ",
])
def test_normalize_is_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once

def test_case_folding():
    assert normalize("ABC") == normalize("abc") == "abc"

def test_fullwidth_alphanumerics_fold_to_halfwidth():
    assert normalize("０１２３４５６７８９") == "0123456789"
    assert normalize("ＡＢＣ") == "abc"
    assert normalize("ｘｙｚ") == "xyz"

def test_hiragana_folds_to_katakana():
    assert normalize("ぷろぐらみんぐ") == "プログラミング"
    assert normalize("ねこ") == normalize("ネコ")

def test_whitespace_is_trimmed():
    assert normalize("  猫  ") == "猫"
    assert normalize("\t\n") == ""

def test_unmapped_characters_pass_through():
    # 한자, 기호, 반각 가타카나는 그대로
    assert normalize("映画!?") == "映画!?"
    assert normalize("ｶﾀｶﾅ") == "ｶﾀｶﾅ"
