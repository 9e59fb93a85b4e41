# contact_manager/services/validation.py
"""
Motor de validación: interpreta las filas de `validation_rules` contra un mapa
de campos. Puro, sin I/O; las reglas se pasan explícitamente.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RuleKind(str, Enum):
    REQUIRED = "required"
    EMAIL = "email"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "regex"


# Nombres alternativos aceptados en la columna rule_type
_KIND_ALIASES = {
    "required": RuleKind.REQUIRED,
    "email": RuleKind.EMAIL,
    "email_format": RuleKind.EMAIL,
    "email-format": RuleKind.EMAIL,
    "min_length": RuleKind.MIN_LENGTH,
    "min-length": RuleKind.MIN_LENGTH,
    "max_length": RuleKind.MAX_LENGTH,
    "max-length": RuleKind.MAX_LENGTH,
    "regex": RuleKind.PATTERN,
    "pattern": RuleKind.PATTERN,
}


@dataclass(frozen=True)
class ValidationRule:
    field_name: str
    kind: RuleKind
    value: Optional[str]
    error_message: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Optional["ValidationRule"]:
        """Construye la regla desde una fila del store; None si rule_type es desconocido."""
        kind = _KIND_ALIASES.get(str(row.get("rule_type") or "").strip().lower())
        if kind is None:
            return None
        value = row.get("rule_value")
        return cls(
            field_name=row["field_name"],
            kind=kind,
            value=None if value is None else str(value),
            error_message=row.get("error_message") or f"Invalid {row['field_name']}",
        )


@dataclass
class FormValidation:
    valid: bool
    errors_by_field: Dict[str, List[str]] = field(default_factory=dict)


def rules_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[ValidationRule]:
    rules = []
    for row in rows:
        rule = ValidationRule.from_row(row)
        if rule is not None:
            rules.append(rule)
    return rules


_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def _int_param(value: Optional[str]) -> int:
    # Prefijo entero como parseInt: "10px" -> 10, "5.0" -> 5, "abc" -> 0
    m = _INT_PREFIX_RE.match("" if value is None else str(value))
    return int(m.group(1)) if m else 0


def _violates(rule: ValidationRule, value: str) -> bool:
    if rule.kind is RuleKind.REQUIRED:
        return value.strip() == ""

    # El resto de reglas sólo aplica a valores no vacíos
    if value == "":
        return False

    if rule.kind is RuleKind.EMAIL:
        return EMAIL_RE.match(value) is None
    if rule.kind is RuleKind.MIN_LENGTH:
        return len(value) < _int_param(rule.value)
    if rule.kind is RuleKind.MAX_LENGTH:
        return len(value) > _int_param(rule.value)
    if rule.kind is RuleKind.PATTERN:
        if not rule.value:
            return False
        try:
            return re.search(rule.value, value) is None
        except re.error:
            return True
    return False


def evaluate(field_name: str, value: Optional[str], rules: Iterable[ValidationRule]) -> List[str]:
    """Evalúa todas las reglas del campo (sin cortocircuito) y devuelve los mensajes de error."""
    text = "" if value is None else str(value)
    return [
        rule.error_message
        for rule in rules
        if rule.field_name == field_name and _violates(rule, text)
    ]


def evaluate_form(field_map: Mapping[str, Optional[str]], rules: Iterable[ValidationRule]) -> FormValidation:
    rules = list(rules)
    errors: Dict[str, List[str]] = {}
    for name, value in field_map.items():
        messages = evaluate(name, value, rules)
        if messages:
            errors[name] = messages
    return FormValidation(valid=not errors, errors_by_field=errors)


# Reglas fijas de Contact: aplican siempre, haya o no filas en validation_rules
CONTACT_RULES = [
    ValidationRule("first_name", RuleKind.REQUIRED, None, "First name is required"),
    ValidationRule("last_name", RuleKind.REQUIRED, None, "Last name is required"),
    ValidationRule("email", RuleKind.REQUIRED, None, "Email is required"),
    ValidationRule("email", RuleKind.EMAIL, None, "Please enter a valid email address"),
]


def validate_contact(field_map: Mapping[str, Optional[str]], configured: Iterable[ValidationRule] = ()) -> FormValidation:
    result = evaluate_form(field_map, [*CONTACT_RULES, *configured])
    for name, messages in result.errors_by_field.items():
        result.errors_by_field[name] = list(dict.fromkeys(messages))
    return result
