from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Union


def load_class_names(names_path: Union[str, Path]) -> List[str]:
    """
    Load class names from a darknet style `.names` file.

    One label per line, line number is the class id:

        person
        bicycle
        car
        ...

    Blank lines are skipped and surrounding whitespace is stripped.
    """

    path = Path(names_path)
    if not path.exists():
        raise FileNotFoundError(f"Class names file not found: {path}")

    names: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line:
                continue
            names.append(line)

    return names


def class_name(names: Sequence[str], class_id: int) -> str:
    if names and 0 <= class_id < len(names):
        return names[class_id]
    return str(class_id)
