import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

T = TypeVar("T")

PAGE_SIZE_OPTIONS = (5, 10, 25, 50, 100)
SORT_ASC = "asc"
SORT_DESC = "desc"
DEFAULT_SORT_DIRECTION = SORT_DESC


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


@dataclass
class SortState:
    """Estado de ordenação de uma tabela: clicar de novo na mesma coluna inverte a direção."""
    column: Optional[str] = None
    direction: str = DEFAULT_SORT_DIRECTION

    def toggle(self, column: str) -> "SortState":
        if column == self.column:
            self.direction = SORT_ASC if self.direction == SORT_DESC else SORT_DESC
        else:
            self.column = column
            self.direction = DEFAULT_SORT_DIRECTION
        return self


def sort_key_for(column: str) -> Callable[[Any], Any]:
    """ROAS marcado como infinito ordena como +inf, não como o sentinela numérico."""
    def key(item: Any):
        if column == "roas" and _field(item, "roas_infinite"):
            return (0, math.inf)
        value = _field(item, column)
        if value is None:
            return (1, 0)
        if isinstance(value, str):
            return (0, value.lower())
        return (0, value)
    return key


def sort_items(items: Sequence[T], column: Optional[str], direction: str = DEFAULT_SORT_DIRECTION) -> List[T]:
    """
    Ordenação estável: empates mantêm a ordem original em ambas as direções.
    Valores ausentes sempre ficam no fim.
    """
    if not column:
        return list(items)
    key = sort_key_for(column)
    present = [it for it in items if key(it)[0] == 0]
    missing = [it for it in items if key(it)[0] == 1]
    # reverse=True do sorted() preserva a estabilidade
    ordered = sorted(present, key=lambda it: key(it)[1], reverse=direction == SORT_DESC)
    return ordered + missing


def normalize_page_size(page_size: Optional[int], default: int = PAGE_SIZE_OPTIONS[0]) -> int:
    if page_size in PAGE_SIZE_OPTIONS:
        return page_size
    return default


def paginate(items: Sequence[T], page: int = 0, page_size: int = PAGE_SIZE_OPTIONS[0]) -> Dict[str, Any]:
    """Página com índice limitado a [0, total_pages - 1]; sempre existe ao menos uma página."""
    size = max(1, int(page_size or 1))
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / size))
    safe_page = min(max(0, int(page or 0)), total_pages - 1)
    start = safe_page * size
    return {
        "items": list(items[start:start + size]),
        "page": safe_page,
        "page_size": size,
        "total_pages": total_pages,
        "total_items": total_items,
    }
