# a11y_audit/patterns.py
"""
Locale-keyed heuristic pattern tables.

Heuristics that depend on wording or naming conventions (generic link text,
action vocabulary, color-only class hints) are data. Adding a locale means
adding a table here, not changing analyzer code.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from a11y_exceptions import ConfigurationError


@dataclass(frozen=True)
class PatternTable:
    """
    Attributes:
        generic_phrases: Names that say nothing out of context (exact match)
        descriptive_words: Action vocabulary that makes a name clearer
        indicator_words: Words that carry state alongside color
        required_words: Words announcing a required field
        new_window_words: Words announcing a link opens a new window
        redundant_image_phrases: Alt text prefixes a screen reader already implies
        redundant_role_words: Role names that should not be repeated in a button name
        color_class_keywords: Class fragments suggesting color carries meaning
        icon_class_hints: Class fragments marking an icon
        pattern_class_hints: Class fragments marking a texture/pattern cue
        pause_words: Words labelling a pause/stop control
    """
    locale: str
    generic_phrases: FrozenSet[str]
    descriptive_words: Tuple[str, ...]
    indicator_words: Tuple[str, ...]
    required_words: Tuple[str, ...]
    new_window_words: Tuple[str, ...]
    redundant_image_phrases: Tuple[str, ...]
    redundant_role_words: Tuple[str, ...]
    color_class_keywords: Tuple[str, ...]
    icon_class_hints: Tuple[str, ...]
    pattern_class_hints: Tuple[str, ...]
    pause_words: Tuple[str, ...]

    def is_generic(self, name: str) -> bool:
        return name.strip().lower() in self.generic_phrases

    def has_descriptive_word(self, name: str) -> bool:
        lowered = name.lower()
        return any(word in lowered for word in self.descriptive_words)

    def mentions(self, text: str, words: Tuple[str, ...]) -> bool:
        lowered = text.lower()
        return any(word in lowered for word in words)


_SHARED_CLASS_KEYWORDS = (
    "error", "success", "warning", "info", "red", "green", "yellow", "blue",
    "primary", "secondary", "danger",
)
_SHARED_ICON_HINTS = ("icon", "fa-", "material-icons", "glyphicon")
_SHARED_PATTERN_HINTS = ("pattern", "stripe", "dot")


PATTERN_TABLES: Dict[str, PatternTable] = {
    "en": PatternTable(
        locale="en",
        generic_phrases=frozenset({"click here", "read more", "learn more", "more", "here", "button", "link", "image"}),
        descriptive_words=("submit", "cancel", "close", "open", "save", "delete", "edit", "add", "remove"),
        indicator_words=("required", "optional", "error", "success", "warning", "info", "selected", "active"),
        required_words=("required", "*"),
        new_window_words=("new window", "new tab", "opens in"),
        redundant_image_phrases=("image of", "picture of", "photo of", "graphic of"),
        redundant_role_words=("button",),
        color_class_keywords=_SHARED_CLASS_KEYWORDS,
        icon_class_hints=_SHARED_ICON_HINTS,
        pattern_class_hints=_SHARED_PATTERN_HINTS,
        pause_words=("pause", "stop"),
    ),
    "ko": PatternTable(
        locale="ko",
        generic_phrases=frozenset({
            "여기를 클릭", "여기", "더 보기", "더보기", "자세히 보기", "자세히", "버튼", "링크", "이미지",
            "click here", "read more", "learn more",
        }),
        descriptive_words=("제출", "취소", "닫기", "열기", "저장", "삭제", "편집", "추가", "제거", "검색"),
        indicator_words=("필수", "선택", "오류", "성공", "경고", "정보", "선택됨", "활성"),
        required_words=("필수", "required", "*"),
        new_window_words=("새 창", "새 탭", "new window"),
        redundant_image_phrases=("이미지:", "사진:", "그림:", "image of", "picture of"),
        redundant_role_words=("버튼", "button"),
        color_class_keywords=_SHARED_CLASS_KEYWORDS,
        icon_class_hints=_SHARED_ICON_HINTS,
        pattern_class_hints=_SHARED_PATTERN_HINTS,
        pause_words=("일시정지", "정지", "pause", "stop"),
    ),
}


def get_patterns(locale: str) -> PatternTable:
    try:
        return PATTERN_TABLES[locale]
    except KeyError:
        raise ConfigurationError(
            message=f"No pattern table for locale '{locale}'",
            config_key="A11Y_LOCALE",
            expected_format=f"One of: {', '.join(sorted(PATTERN_TABLES))}"
        )
