from typing import List, Optional, Tuple

import pytest

from core import Cell, DIRECTION, line_coordinates, resolve_line


def _line(*values: int) -> List[Optional[Cell]]:
    """Build a line; non-zero values get identities 0, 1, 2... left to right."""
    cells: List[Optional[Cell]] = []
    next_id = 0
    for v in values:
        if v:
            cells.append(Cell(v, next_id))
            next_id += 1
        else:
            cells.append(None)
    return cells


def _values(cells: List[Optional[Cell]]) -> List[int]:
    return [c.value if c else 0 for c in cells]


def test_pair_merges_into_first_slot() -> None:
    result = resolve_line(_line(2, 2, 0, 0), next_identity=100)

    assert _values(result.cells) == [4, 0, 0, 0]
    assert result.cells[0] == Cell(4, 100)
    assert result.changed is True
    assert result.score_delta == 4
    assert result.merged_identities == (100,)
    assert result.next_identity == 101


def test_gap_is_compacted_and_only_first_pair_merges() -> None:
    result = resolve_line(_line(2, 0, 2, 2), next_identity=10)

    assert _values(result.cells) == [4, 2, 0, 0]
    assert result.score_delta == 4
    # the trailing 2 keeps its own identity
    assert result.cells[1] == Cell(2, 2)


def test_four_equal_tiles_make_two_merges() -> None:
    result = resolve_line(_line(2, 2, 2, 2), next_identity=7)

    assert _values(result.cells) == [4, 4, 0, 0]
    assert result.score_delta == 8
    assert result.merged_identities == (7, 8)
    assert result.next_identity == 9


def test_new_tile_does_not_merge_again_in_same_pass() -> None:
    result = resolve_line(_line(4, 4, 8, 0), next_identity=0)

    assert _values(result.cells) == [8, 8, 0, 0]
    assert result.score_delta == 8


def test_unmovable_line_is_unchanged() -> None:
    line = _line(2, 4, 8, 16)
    result = resolve_line(line, next_identity=50)

    assert result.cells == line
    assert result.changed is False
    assert result.score_delta == 0
    assert result.merged_identities == ()
    assert result.next_identity == 50


def test_slide_without_merge_keeps_identity() -> None:
    result = resolve_line(_line(0, 0, 0, 2), next_identity=5)

    assert result.cells == [Cell(2, 0), None, None, None]
    assert result.changed is True
    assert result.score_delta == 0
    assert result.next_identity == 5


def test_empty_line() -> None:
    result = resolve_line([None, None, None], next_identity=0)

    assert result.cells == [None, None, None]
    assert result.changed is False


@pytest.mark.parametrize(
    "direction, expected",
    [
        (DIRECTION.LEFT, [(1, 0), (1, 1), (1, 2)]),
        (DIRECTION.RIGHT, [(1, 2), (1, 1), (1, 0)]),
        (DIRECTION.UP, [(0, 1), (1, 1), (2, 1)]),
        (DIRECTION.DOWN, [(2, 1), (1, 1), (0, 1)]),
    ],
)
def test_line_coordinates_follow_direction_of_travel(direction: DIRECTION, expected: List[Tuple[int, int]]) -> None:
    assert line_coordinates(direction, 1, 3) == expected


def test_line_coordinates_rejects_unknown_direction() -> None:
    with pytest.raises(ValueError):
        line_coordinates("LEFT", 0, 4)  # type: ignore[arg-type]
