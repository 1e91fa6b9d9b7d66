"""Parse class labels such as "바렐 체어(승정쌤)(4/8)"."""

import re
from dataclasses import dataclass
from typing import Optional

_FRACTION = re.compile(r'\(\s*(\d+)\s*/\s*(\d+)\s*\)')
_GROUP = re.compile(r'\(([^()]*)\)')


@dataclass(frozen=True)
class CourseInfo:
    name: str
    instructor: Optional[str]
    current: int
    max: int

    @property
    def is_full(self) -> bool:
        return self.current >= self.max


def parse_capacity(label: str) -> Optional[CourseInfo]:
    """
    Extract course name, instructor and enrollment from a class label.

    Args:
        label: Text like "name(instructor)(current/max)" or "name(current/max)"

    Returns:
        CourseInfo, or None when the label carries no usable "(current/max)"
    """
    if not label:
        return None

    fraction = _FRACTION.search(label)
    if not fraction:
        return None

    current, maximum = int(fraction.group(1)), int(fraction.group(2))
    if maximum <= 0:
        return None

    head = label[:fraction.start()]
    paren = head.find('(')
    name = (head[:paren] if paren >= 0 else head).strip()

    instructor = None
    groups = _GROUP.findall(head)
    if groups:
        instructor = groups[-1].strip() or None

    return CourseInfo(name=name, instructor=instructor, current=current, max=maximum)
