# contact_manager/services/config_store.py

from typing import Any, Dict, List, Optional

from contact_manager.services.store_utils import execute, rows
from contact_manager.services.validation import ValidationRule, rules_from_rows


class ConfigStore:
    """
    Tablas de configuración globales: validation_rules, ui_texts y settings.
    """

    def __init__(self, sb):
        self.sb = sb

    def validation_rule_rows(self, field_names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        q = self.sb.table("validation_rules").select("field_name, rule_type, rule_value, error_message")
        if field_names:
            q = q.in_("field_name", field_names)
        return rows(execute(q, "config.validation_rules"))

    def validation_rules(self, field_names: Optional[List[str]] = None) -> List[ValidationRule]:
        return rules_from_rows(self.validation_rule_rows(field_names))

    def _key_values(self, table: str) -> Dict[str, str]:
        data = rows(execute(self.sb.table(table).select("key, value"), f"config.{table}"))
        return {r["key"]: r["value"] for r in data}

    def ui_texts(self) -> Dict[str, str]:
        return self._key_values("ui_texts")

    def settings(self) -> Dict[str, str]:
        return self._key_values("settings")
