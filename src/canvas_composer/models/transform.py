"""Transform data structures for coordinate and rectangle representation."""
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Vec2:
    """2D vector for coordinate pairs.

    Used for any x/y coordinate pair across the three nested spaces:
    - Global canvas space
    - Image-local space (origin at the image's pre-transform top-left)
    - Annotation-local space (before the annotation's own rotation/scale)
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))

    def __add__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x - other.x, self.y - other.y)

    def translated(self, dx: float, dy: float) -> 'Vec2':
        return Vec2(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle.

    Width/height may be negative while a rectangle is being dragged out;
    call normalized() before using it as a selection or containment test.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Vec2:
        return Vec2(self.x + self.width / 2, self.y + self.height / 2)

    def normalized(self) -> 'Rect':
        """Flip origin for negative sizes and return absolute width/height"""
        x, y, w, h = self.x, self.y, self.width, self.height
        if w < 0:
            x += w
            w = -w
        if h < 0:
            y += h
            h = -h
        return Rect(x, y, w, h)

    def contains(self, point: Vec2) -> bool:
        r = self.normalized()
        return r.x <= point.x <= r.right and r.y <= point.y <= r.bottom

    def intersects(self, other: 'Rect') -> bool:
        a = self.normalized()
        b = other.normalized()
        return not (b.x > a.right or b.right < a.x or b.y > a.bottom or b.bottom < a.y)

    def translated(self, dx: float, dy: float) -> 'Rect':
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def union(self, other: 'Rect') -> 'Rect':
        a = self.normalized()
        b = other.normalized()
        x = min(a.x, b.x)
        y = min(a.y, b.y)
        return Rect(x, y, max(a.right, b.right) - x, max(a.bottom, b.bottom) - y)

    @classmethod
    def from_points(cls, points: Iterable[Vec2]) -> Optional['Rect']:
        """Tight bounding box of a point cloud, or None when empty"""
        points = list(points)
        if not points:
            return None
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
