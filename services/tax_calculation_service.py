"""
Tax calculation entry point and saved calculations
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import SavedData
from services.api_client import api_client, ApiResult
from tax import TaxCalculationParams, TaxCalculationResult, tax_strategy_factory
from utils import logger, DatabaseError, ValidationError, Validator

TAX_CALCULATION = 'tax_calculation'


def _unwrap(result: ApiResult, action: str) -> Any:
    if not result.ok:
        raise DatabaseError(f"Failed to {action}: {result.error}")
    return result.data


class TaxCalculationService:
    """Validates input, runs the country strategy and stores results"""

    def calculate(self, country: str, gross_salary: Any,
                  deductions: Optional[Dict[str, float]] = None,
                  regime: Optional[str] = None,
                  additional_params: Optional[Dict[str, Any]] = None) -> TaxCalculationResult:
        salary = float(Validator.validate_salary(gross_salary))
        strategy = tax_strategy_factory.get_strategy(country)

        params = TaxCalculationParams(
            gross_salary=salary,
            deductions=dict(deductions or {}),
            regime=regime,
            additional_params=dict(additional_params or {})
        )
        validation = strategy.validate_params(params)
        if not validation.is_valid:
            raise ValidationError("; ".join(validation.errors))
        for warning in validation.warnings:
            logger.warning(f"{strategy.name} tax input: {warning}")

        result = strategy.calculate_tax(params)
        logger.info(
            f"Calculated {strategy.country_code} tax for {salary:.2f}: "
            f"total {result.total_tax:.2f}, effective {result.effective_tax_rate:.2f}%"
        )
        return result

    async def save_calculation(self, user_id: str, name: str, result: TaxCalculationResult,
                               metadata: Optional[Dict[str, Any]] = None) -> SavedData:
        name = Validator.validate_length(Validator.sanitize_string(name), 1, 255, "Name")
        content = {
            'result': result.to_dict(),
            'metadata': dict(metadata or {}),
        }
        row = _unwrap(
            await api_client.save_user_data(user_id, TAX_CALCULATION, name, content),
            "save calculation"
        )
        logger.info(f"Saved tax calculation '{name}' for user {user_id}")
        return SavedData.from_dict(dict(row))

    async def get_saved_calculations(self, user_id: str) -> List[SavedData]:
        rows = _unwrap(await api_client.get_user_data(user_id, TAX_CALCULATION), "get saved calculations")
        return [SavedData.from_dict(dict(r)) for r in rows]

    async def set_favorite(self, data_id: int, is_favorite: bool) -> Optional[SavedData]:
        row = _unwrap(await api_client.set_user_data_favorite(data_id, is_favorite), "update favorite")
        return SavedData.from_dict(dict(row)) if row else None

    async def delete_saved(self, data_id: int) -> bool:
        status = _unwrap(await api_client.delete_user_data(data_id), "delete saved data")
        return "DELETE 1" in (status or "")

    async def search_saved(self, user_id: str, query: str, data_type: Optional[str] = None) -> List[SavedData]:
        rows = _unwrap(
            await api_client.search_user_data(user_id, Validator.sanitize_string(query), data_type),
            "search saved data"
        )
        return [SavedData.from_dict(dict(r)) for r in rows]

    async def export_user_data(self, user_id: str) -> Dict[str, Any]:
        rows = _unwrap(await api_client.get_user_data(user_id), "export user data")
        return {
            'exportDate': datetime.now().isoformat(),
            'userData': [SavedData.from_dict(dict(r)).to_dict() for r in rows],
        }

    async def import_user_data(self, user_id: str, payload: Dict[str, Any]) -> int:
        """Store every item of an export payload under user_id; returns the count"""
        items = payload.get('userData')
        if not isinstance(items, list):
            raise ValidationError("Invalid import format")

        imported = 0
        for item in items:
            if not item.get('data_type') or not item.get('data_name'):
                raise ValidationError("Invalid import format")
            _unwrap(
                await api_client.save_user_data(
                    user_id, item['data_type'], item['data_name'],
                    item.get('data_content') or {}, bool(item.get('is_favorite', False))
                ),
                "import user data"
            )
            imported += 1
        logger.info(f"Imported {imported} saved items for user {user_id}")
        return imported


tax_calculation_service = TaxCalculationService()
