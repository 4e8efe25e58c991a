"""Identity of a pod, serialised as compact JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

_FIELDS = {"namespace": "namespace", "podname": "pod_name"}

_HTML_SAFE = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class PodInfo:
    """The namespace and name of a pod."""

    namespace: str = ""
    pod_name: str = ""

    def to_string(self) -> str:
        text = json.dumps(
            {"namespace": self.namespace, "podName": self.pod_name},
            separators=(",", ":"),
            ensure_ascii=False,
        )
        for char, escaped in _HTML_SAFE.items():
            text = text.replace(char, escaped)
        return text

    def __str__(self) -> str:
        return self.to_string()


def parse_pod_info(text: Optional[str], out: Optional[PodInfo] = None) -> PodInfo:
    """Decode JSON into ``out`` (or a new PodInfo) and return it.

    Keys match field names without regard to case; unknown keys are ignored and
    fields absent from the document keep their values. Raises ValueError when
    the text is not valid JSON or does not describe a pod.
    """
    target = out if out is not None else PodInfo()
    data = json.loads(text or "")
    if data is None:
        return target
    if not isinstance(data, dict):
        raise ValueError(f"cannot decode {type(data).__name__} into PodInfo")
    updates = {}
    for key, value in data.items():
        field = _FIELDS.get(key.lower())
        if field is None or value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"cannot decode {type(value).__name__} into field {key!r}")
        updates[field] = value
    for field, value in updates.items():
        setattr(target, field, value)
    return target