"""JSON export of extracted certificates."""

import json
import os
from datetime import datetime
from typing import List, Optional
import logging

from .records import CertificateRecord
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonExporter:
    """Writes certificate records to a JSON file in the export directory."""

    def __init__(self, export_dir: str):
        self.export_dir = export_dir

    def save(
        self,
        records: List[CertificateRecord],
        file_name: Optional[str] = None,
        append: bool = False,
    ) -> str:
        """
        Save records as an indented JSON array with camelCase keys.

        Args:
            records: Records to save
            file_name: Target file name (timestamped name if omitted)
            append: Merge with the records already in the file

        Returns:
            Path of the written file

        Raises:
            PersistenceError: If the file cannot be read or written
        """
        if not file_name:
            file_name = f"calibration_certificates_{datetime.now():%Y%m%d_%H%M%S}.json"
        if not file_name.endswith(".json"):
            file_name += ".json"
        path = os.path.join(self.export_dir, file_name)

        payload = [record.to_dict() for record in records]
        try:
            os.makedirs(self.export_dir, exist_ok=True)
            if append and os.path.exists(path):
                with open(path, "r", encoding="utf-8") as f:
                    existing = json.load(f)
                if not isinstance(existing, list):
                    raise PersistenceError("Existing export is not a JSON array", {"path": path})
                payload = existing + payload

            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not write {path}: {e}", {"path": path}) from e

        logger.info(f"Saved {len(records)} certificate(s) to {path}")
        return path
