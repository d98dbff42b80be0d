"""
JSON Schema контракты выходных записей движка

Каждая запись, которую движок отдаёт наружу (UI, уведомления, хранилище),
имеет Draft 2020-12 схему в hanbuy/core/contracts/schema/. Схема описывает
model_dump(mode="json") соответствующей модели:

    FeeBreakdown       → fee_breakdown.json
    ShippingQuote      → shipping_quote.json
    BoxConsolidation   → box_consolidation.json
    PenaltyAssessment  → penalty_assessment.json
"""

import json
from pathlib import Path
from typing import Any, ClassVar, Dict, Final, Iterator

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import BaseModel

SCHEMA_DIR: Final[Path] = Path(__file__).parent / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Чтение схем из каталога с meta-валидацией и кэшем по имени."""

    def __init__(self, schema_dir: Path | None = None):
        self.schema_dir = schema_dir or SCHEMA_DIR
        if not self.schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self.schema_dir}")
        self._cache: Dict[str, Dict[str, Any]] = {}

    def available(self) -> list[str]:
        """Имена схем, поставляемых в каталоге."""
        return sorted(path.stem for path in self.schema_dir.glob("*.json"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Схема по имени без расширения.

        Raises:
            FileNotFoundError: схемы нет в каталоге
            ValueError: файл не является валидной Draft 2020-12 схемой
        """
        cached = self._cache.get(schema_name)
        if cached is not None:
            return cached

        path = self.schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"Schema not found: {path}")

        schema = json.loads(path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e

        self._cache[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Валидатор одного контракта.

    Подклассы задают только schema_name.
    """

    schema_name: ClassVar[str]

    def __init__(self, loader: SchemaLoader | None = None):
        schema = (loader or _SCHEMA_LOADER).load_schema(self.schema_name)
        self._validator = Draft202012Validator(schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """Raises: jsonschema.ValidationError при первом нарушении."""
        self._validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self._validator.iter_errors(data)

    def error_messages(self, data: Dict[str, Any]) -> list[str]:
        """Все нарушения в виде 'path.to.field: message' (для логов и UI)."""
        messages = []
        errors = sorted(self.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
        for error in errors:
            location = ".".join(str(part) for part in error.absolute_path) or "<root>"
            messages.append(f"{location}: {error.message}")
        return messages


class FeeBreakdownValidator(ContractValidator):
    schema_name = "fee_breakdown"


class ShippingQuoteValidator(ContractValidator):
    schema_name = "shipping_quote"


class BoxConsolidationValidator(ContractValidator):
    schema_name = "box_consolidation"


class PenaltyAssessmentValidator(ContractValidator):
    schema_name = "penalty_assessment"


# Модель → валидатор её контракта (по имени класса, без импорта слоёв выше)
_VALIDATORS_BY_MODEL: Final[Dict[str, type[ContractValidator]]] = {
    "FeeBreakdown": FeeBreakdownValidator,
    "ShippingQuote": ShippingQuoteValidator,
    "BoxConsolidation": BoxConsolidationValidator,
    "PenaltyAssessment": PenaltyAssessmentValidator,
}


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_model(model: BaseModel) -> None:
    """
    Проверка модели движка против её контракта.

    Raises:
        KeyError: для модели нет контракта
        jsonschema.ValidationError: dump модели нарушает контракт
    """
    validator_cls = _VALIDATORS_BY_MODEL[type(model).__name__]
    validator_cls().validate(model.model_dump(mode="json"))


def validate_fee_breakdown(data: Dict[str, Any]) -> None:
    FeeBreakdownValidator().validate(data)


def validate_shipping_quote(data: Dict[str, Any]) -> None:
    ShippingQuoteValidator().validate(data)


def validate_box_consolidation(data: Dict[str, Any]) -> None:
    BoxConsolidationValidator().validate(data)


def validate_penalty_assessment(data: Dict[str, Any]) -> None:
    PenaltyAssessmentValidator().validate(data)
