"""Canonical labels for levels, year/grade labels and positions.

Both the spreadsheet import and manual roster edits go through these helpers,
so a label accepted in one place is accepted (and spelled) the same in the other.
"""
import re

from errors import RowRejected
from models import LevelEnum, PositionEnum

_LEVEL_PATTERNS = [
    (re.compile(r"(?<![a-z])(elem|elementary)(?![a-z])"), LevelEnum.elementary),
    (re.compile(r"(?<![a-z])(jhs|junior\s*high)(?![a-z])"), LevelEnum.jhs),
    (re.compile(r"(?<![a-z])(shs|senior\s*high)(?![a-z])"), LevelEnum.shs),
    (re.compile(r"(?<![a-z])(college|coll)(?![a-z])"), LevelEnum.college),
]

_ELEMENTARY_RE = re.compile(r"^(grade ?)?([1-6])(st|nd|rd|th)?$")
_JHS_RE = re.compile(r"^(grade ?)?(7|8|9|10)(st|nd|rd|th)?$")
_SHS_RE = {
    11: re.compile(r"(^| )g?11(th)?( |$)|grade ?11"),
    12: re.compile(r"(^| )g?12(th)?( |$)|grade ?12"),
}
_COLLEGE_RE = [
    (re.compile(r"(^| )(1|1st|first|freshman)( |year|$)"), "1st Year"),
    (re.compile(r"(^| )(2|2nd|second|sophomore)( |year|$)"), "2nd Year"),
    (re.compile(r"(^| )(3|3rd|third|junior)( |year|$)"), "3rd Year"),
    (re.compile(r"(^| )(4|4th|fourth|senior)( |year|$)"), "4th Year"),
    (re.compile(r"(^| )(5|5th|fifth)( |year|$)"), "5th Year"),
]
# SHS grades typed into a College sheet
_SHS_ON_COLLEGE_RE = re.compile(r"grade ?1[12]|(^| )g?1[12]( |$)")
# school grades or "high school" wording typed into a College sheet
_GRADE_ON_COLLEGE_RE = re.compile(r"(^| )(grade|g) ?\d|(?<![a-z])high(?![a-z])")

_POSITION_ALIASES = {
    "vp": PositionEnum.vice_president,
    "vice pres": PositionEnum.vice_president,
    "rep": PositionEnum.representative,
}


def resolve_level(value):
    """Map free text like ``"senior high"`` or ``"Coll."`` to a level name.

    Returns the canonical string (``"Elementary"``, ``"JHS"``, ``"SHS"`` or
    ``"College"``) or ``None`` when nothing matches.
    """
    if isinstance(value, LevelEnum):
        return value.value
    text = str(value or "").strip().lower()
    if not text:
        return None
    for pattern, level in _LEVEL_PATTERNS:
        if pattern.search(text):
            return level.value
    return None


def _clean(raw):
    text = str(raw if raw is not None else "").strip().lower()
    text = text.replace(".", "")
    return re.sub(r"\s+", " ", text)


def resolve_year_label(level, raw):
    """Normalize a year/grade label for ``level``.

    Returns ``"Grade N"`` for Elementary/JHS/SHS and ``"Nth Year"`` for
    College. Raises ``RowRejected`` with a reason echoing ``raw`` otherwise.
    """
    given = str(raw if raw is not None else "").strip()
    text = _clean(raw)
    canonical = resolve_level(level)

    if canonical == LevelEnum.elementary.value:
        m = _ELEMENTARY_RE.match(text)
        if m:
            return f"Grade {int(m.group(2))}"
        raise RowRejected(f'Invalid for Elementary. Use Grade 1-6 (got "{given}").')

    if canonical == LevelEnum.jhs.value:
        m = _JHS_RE.match(text)
        if m:
            return f"Grade {int(m.group(2))}"
        raise RowRejected(f'Invalid for JHS. Use Grade 7-10 (got "{given}").')

    if canonical == LevelEnum.shs.value:
        for grade, pattern in _SHS_RE.items():
            if pattern.search(text):
                return f"Grade {grade}"
        raise RowRejected(f'Invalid for SHS. Use Grade 11 or Grade 12 (got "{given}").')

    if canonical == LevelEnum.college.value:
        if _SHS_ON_COLLEGE_RE.search(text):
            raise RowRejected(
                f'This record is not valid for College (got "{given}", looks like SHS).'
            )
        if _GRADE_ON_COLLEGE_RE.search(text):
            raise RowRejected(
                f'This record is not valid for College (got "{given}", looks like a school grade).'
            )
        for pattern, label in _COLLEGE_RE:
            if pattern.search(text):
                return label
        raise RowRejected(f'Invalid for College. Use 1st-5th Year (got "{given}").')

    raise RowRejected(f'Unknown level "{level}".')


def resolve_position(value):
    """Canonical position name, or ``None`` for blank/unknown input."""
    text = re.sub(r"[\s_-]+", " ", str(value or "").strip().lower())
    if not text:
        return None
    for position in PositionEnum:
        if text == position.value.lower():
            return position.value
    alias = _POSITION_ALIASES.get(text)
    return alias.value if alias else None


def normalize_school_id(value):
    return str(value or "").strip().lower()
