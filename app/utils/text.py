import re
import unicodedata
from typing import Any, Iterable, Optional

NO_SUB_ID_LABEL = "Sem Sub ID"
_TRAILING_HYPHENS_RE = re.compile(r"-+$")


def normalize_name(name: Any) -> str:
    """Minúsculo, sem acentos, com pontuação/espaços trocados por um único "_"."""
    nfkd = unicodedata.normalize("NFKD", str(name))
    only_ascii = "".join(c for c in nfkd if not unicodedata.combining(c))
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in only_ascii.lower())
    return "_".join(filter(None, cleaned.split("_")))


def find_key(keys: Iterable[str], aliases: Iterable[str]) -> Optional[str]:
    """Primeira chave cujo nome normalizado bate com um alias, respeitando a ordem dos aliases."""
    normalized = {}
    for key in keys:
        normalized.setdefault(normalize_name(key), key)
    for alias in aliases:
        found = normalized.get(normalize_name(alias))
        if found is not None:
            return found
    return None


def normalize_sub_id(sub_id: Any) -> str:
    """Remove espaços e hífens finais (ruído comum na Shopee); vazio vira "Sem Sub ID"."""
    if sub_id is None:
        return NO_SUB_ID_LABEL
    cleaned = str(sub_id).strip()
    if cleaned in ("", "NaN", "nan", "null", "None"):
        return NO_SUB_ID_LABEL
    cleaned = _TRAILING_HYPHENS_RE.sub("", cleaned).strip()
    return cleaned or NO_SUB_ID_LABEL
