"""
alertnotify — Label / annotation sets
=====================================
``KV`` is the mapping type handed to templates for labels and annotations.
Keys wrapped in double underscores (``__orgId__``) are private: they carry
data for the extension itself and never reach a rendered notification.
"""
from __future__ import annotations

from typing import Iterable, List, Mapping, NamedTuple, Optional


class Pair(NamedTuple):
    name: str
    value: str


class KV(dict):
    """dict[str, str] with the helpers notification templates rely on."""

    def sorted_pairs(self) -> List[Pair]:
        """Pairs sorted by name, ``alertname`` first."""
        names = sorted(self.keys())
        if "alertname" in self:
            names.remove("alertname")
            names.insert(0, "alertname")
        return [Pair(name, self[name]) for name in names]

    def names(self) -> List[str]:
        return [p.name for p in self.sorted_pairs()]

    def values_list(self) -> List[str]:
        return [p.value for p in self.sorted_pairs()]

    def remove(self, keys: Iterable[str]) -> "KV":
        drop = set(keys)
        return KV({k: v for k, v in self.items() if k not in drop})


def is_private_key(key: str) -> bool:
    return key.startswith("__") and key.endswith("__")


def remove_private_items(kv: Optional[Mapping[str, str]]) -> KV:
    # returns a copy, the input keeps its private keys
    return KV({k: v for k, v in (kv or {}).items() if not is_private_key(k)})
