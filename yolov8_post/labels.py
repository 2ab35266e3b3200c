from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

from .errors import PreconditionError
from .types import LabelSet


PathLike = Union[str, Path]


def load_labels(labels_path: PathLike) -> LabelSet:
    """
    Load class names from a plain text file, one label per line (`Labels.txt`).

    Line order is class index order, so an interior blank line is kept as an
    (empty) class name. Only trailing blank lines are dropped.
    """

    path = Path(labels_path)
    if not path.exists():
        raise FileNotFoundError(f"Label file not found: {path}")

    names: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            names.append(raw.rstrip("\r\n").strip())

    while names and not names[-1]:
        names.pop()

    if not names:
        raise PreconditionError(f"Label file is empty: {path}")
    return LabelSet(names)


def load_class_names(metadata_path: PathLike) -> LabelSet:
    """
    Load class names from the lightweight `metadata.yaml` format exported with
    YOLO models:

        names:
          0: person
          1: bicycle
          ...

    Parsed line by line; ids must run contiguously from 0.
    """

    path = Path(metadata_path)
    if not path.exists():
        raise FileNotFoundError(f"Metadata file not found: {path}")

    names: Dict[int, str] = {}
    in_names = False

    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # Parse "id: label"; a non-indented key ends the block.
            if not raw[:1].isspace():
                break
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    if not names:
        raise PreconditionError(f"No class names found in metadata: {path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {path} must be contiguous from 0, got {sorted(names)}")
    return LabelSet(names[i] for i in expected)


def load_label_set(path: PathLike) -> LabelSet:
    """
    Load labels from either format, chosen by file suffix.
    """
    if Path(path).suffix.lower() in {".yaml", ".yml"}:
        return load_class_names(path)
    return load_labels(path)
