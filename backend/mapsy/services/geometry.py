from typing import Sequence


def point_in_polygon(point: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """
    Even-odd ray casting test on planar [x, y] positions.

    The ring is closed implicitly: the edge from the last vertex back to the
    first is always tested, so open and closed rings give the same answer.
    Points lying exactly on an edge may fall either way.
    """
    x, y = point[0], point[1]
    inside = False

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]

        # Edge straddles the horizontal through y and the crossing is to the right
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside
