"""Letter-grid path checks.

A word is on the board when it can be traced through horizontally,
vertically or diagonally adjacent cells without using any cell twice.
"""

import unicodedata
from typing import List, Optional, Sequence

# Hebrew final letter forms fold onto their regular forms so that a board
# cell showing the regular letter matches a word ending in the final form.
FINAL_FORMS = {
    'ך': 'כ',
    'ם': 'מ',
    'ן': 'נ',
    'ף': 'פ',
    'ץ': 'צ',
}

NEIGHBOURS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)


def normalize_text(text: str) -> str:
    """Case-fold and fold letter forms so words and cells compare equal."""
    if not text:
        return ''
    folded = unicodedata.normalize('NFC', text.strip()).casefold()
    return ''.join(FINAL_FORMS.get(ch, ch) for ch in folded)


def normalize_grid(grid: Sequence[Sequence[str]]) -> List[List[str]]:
    return [[normalize_text(cell) for cell in row] for row in grid]


def is_valid_grid(grid) -> bool:
    """A grid is a non-empty rectangular list of rows of non-empty strings."""
    if not isinstance(grid, (list, tuple)) or not grid:
        return False
    width = None
    for row in grid:
        if not isinstance(row, (list, tuple)) or not row:
            return False
        if width is None:
            width = len(row)
        elif len(row) != width:
            return False
        if any(not isinstance(cell, str) or not cell.strip() for cell in row):
            return False
    return True


def is_word_on_board(word: str, grid: Optional[Sequence[Sequence[str]]]) -> bool:
    if not word or not grid:
        return False
    target = normalize_text(word)
    if not target:
        return False
    cells = normalize_grid(grid)
    return find_path(target, cells) is not None


def find_path(word: str, cells: List[List[str]]):
    """Return the first path of (row, col) cells spelling ``word``, or None.

    ``word`` and ``cells`` must already be normalised.
    """
    rows = len(cells)
    for r in range(rows):
        for c in range(len(cells[r])):
            cell = cells[r][c]
            if cell and word.startswith(cell):
                path = _search(word, cells, r, c, 0, [])
                if path is not None:
                    return path
    return None


def _search(word, cells, row, col, index, path):
    if row < 0 or row >= len(cells) or col < 0 or col >= len(cells[row]):
        return None
    if (row, col) in path:
        return None
    cell = cells[row][col]
    if not cell or not word.startswith(cell, index):
        return None
    path = path + [(row, col)]
    index += len(cell)
    if index == len(word):
        return path
    for dr, dc in NEIGHBOURS:
        found = _search(word, cells, row + dr, col + dc, index, path)
        if found is not None:
            return found
    return None
