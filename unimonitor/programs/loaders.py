import json
import os
from typing import Any, Dict, List

def _read(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def load_grants(root: str) -> List[Dict[str, Any]]:
    return _read(os.path.join(root, "grants.json"))

def load_records(root: str) -> Dict[str, Any]:
    return _read(os.path.join(root, "records.json"))
