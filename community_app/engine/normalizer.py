# community_app/engine/normalizer.py
"""태그/검색어 비교용 정규화 함수"""

# ひらがな(ぁ U+3041 ~ ゖ U+3096) -> カタカナ(ァ U+30A1 ~ ヶ U+30F6)
HIRAGANA_START = 0x3041
HIRAGANA_END = 0x3096
KANA_OFFSET = 0x60

# 전각 영숫자 -> 반각 영숫자
FULLWIDTH_OFFSET = 0xFEE0
FULLWIDTH_RANGES = (
    (0xFF10, 0xFF19),  # ０-９
    (0xFF21, 0xFF3A),  # Ａ-Ｚ
    (0xFF41, 0xFF5A),  # ａ-ｚ
)


def _fold_char(ch: str) -> str:
    code = ord(ch)
    if HIRAGANA_START <= code <= HIRAGANA_END:
        return chr(code + KANA_OFFSET)
    for start, end in FULLWIDTH_RANGES:
        if start <= code <= end:
            return chr(code - FULLWIDTH_OFFSET)
    return ch


def normalize(text: str) -> str:
    """
    소문자화 -> ひらがな를 カタカナ로 -> 전각 영숫자를 반각으로 -> 앞뒤 공백 제거.
    매핑되지 않는 문자는 그대로 통과합니다.

    >>> normalize(" ＡＢＣ１２３ ")
    'abc123'
    >>> normalize("ぷろぐらみんぐ")
    'プログラミング'
    """
    # 전각 대문자는 lower()에서 전각 소문자가 된 뒤 반각으로 접힙니다.
    return ''.join(_fold_char(ch) for ch in text.lower()).strip()
