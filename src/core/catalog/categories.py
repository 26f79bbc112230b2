"""카테고리 그룹 — 필터 UI용 기본 목록

엔진은 그룹을 모른다. 검색은 임의의 카테고리 문자열 집합으로만 필터링한다.
"""

from __future__ import annotations

DEFAULT_CATEGORY_GROUPS: dict[str, tuple[str, ...]] = {
    "Weapons": (
        "axe", "twohand", "lance", "dual", "rod", "staff",
        "bow", "circle", "chain", "blaster", "gauntlet", "shuriken", "glaive",
    ),
    "Armor": (
        "bodyRobe", "handRobe", "feetRobe",
        "bodyLeather", "handLeather", "feetLeather",
        "bodyMail", "handMail", "feetMail",
        "underwear",
    ),
    "jewelry": ("ring", "earring", "necklace", "belt", "brooch", "accessoryFace"),
    "Other": ("crest", "skillbook", "combat", "quest"),
}


def expand_groups(
    selection: list[str],
    groups: dict[str, tuple[str, ...]] = DEFAULT_CATEGORY_GROUPS,
) -> frozenset[str]:
    """그룹명/카테고리명 혼합 선택 → 카테고리 집합. 그룹명은 소속 카테고리로 펼친다."""
    categories: set[str] = set()
    for name in selection:
        if name in groups:
            categories.update(groups[name])
        else:
            categories.add(name)
    return frozenset(categories)
