# stihirus/export/json.py
import json
from pathlib import Path

from stihirus.models import Failure, Success


class JsonExporter:
    """Export response envelopes to JSON."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def to_string(self, response: Success | Failure) -> str:
        return json.dumps(response.to_dict(), indent=self.indent, ensure_ascii=False)

    def export(self, response: Success | Failure, path: Path) -> None:
        path.write_text(self.to_string(response) + "\n", encoding="utf-8")
