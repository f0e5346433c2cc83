"""Video-wall geometry.

A matrix is a grid of screens in one space showing one composition; each
screen crops the cell at its (row, col).
"""
from collections.abc import Iterable, Mapping
from typing import Any


def _coord(screen: Any, field: str) -> int | None:
    if isinstance(screen, Mapping):
        value = screen.get(field)
    else:
        value = getattr(screen, field, None)
    return None if value is None else int(value)


def calculate_crop(
    comp_width: float,
    comp_height: float,
    row: int,
    col: int,
    total_rows: int,
    total_cols: int,
) -> dict[str, float]:
    """Crop rectangle of cell (row, col) in composition coordinates.

    Out-of-range cells give a rectangle outside the composition.
    """
    width = comp_width / total_cols if total_cols else 0.0
    height = comp_height / total_rows if total_rows else 0.0
    return {
        "x": col * width,
        "y": row * height,
        "width": width,
        "height": height,
    }


def infer_dimensions(screens: Iterable[Any]) -> dict[str, int]:
    max_row = 0
    max_col = 0
    for screen in screens:
        row = _coord(screen, "matrix_row")
        col = _coord(screen, "matrix_col")
        if row is not None and row > max_row:
            max_row = row
        if col is not None and col > max_col:
            max_col = col
    return {"total_rows": max_row + 1, "total_cols": max_col + 1}


def has_coordinates(screen: Any) -> bool:
    return _coord(screen, "matrix_row") is not None and _coord(screen, "matrix_col") is not None


def participates_in_matrix(screen: Any, siblings: Iterable[Any]) -> bool:
    if not has_coordinates(screen):
        return False
    screen_id = _coord_id(screen)
    for other in siblings:
        if screen_id is not None and _coord_id(other) == screen_id:
            continue
        if other is screen:
            continue
        if has_coordinates(other):
            return True
    return False


def _coord_id(screen: Any) -> str | None:
    value = screen.get("id") if isinstance(screen, Mapping) else getattr(screen, "id", None)
    return None if value is None else str(value)
