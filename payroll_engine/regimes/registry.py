"""Selection du module de branche selon l'Industry du salarie."""

import logging
from types import MappingProxyType

from payroll_engine.config.constants import Industry
from payroll_engine.core.exceptions import UnsupportedIndustryError
from payroll_engine.models.employee import Employee
from payroll_engine.models.industry import IndustryPayrollInput, IndustryPayrollResult
from payroll_engine.regimes.base import IndustryModule, StandardModule
from payroll_engine.regimes.construction import ConstructionModule
from payroll_engine.regimes.gastronomy import GastronomyModule
from payroll_engine.regimes.nursing import NursingModule

logger = logging.getLogger("payroll_engine.regimes")

INDUSTRY_MODULES = MappingProxyType({
    Industry.STANDARD: StandardModule(),
    Industry.CONSTRUCTION: ConstructionModule(),
    Industry.GASTRONOMY: GastronomyModule(),
    Industry.NURSING: NursingModule(),
})


def get_industry_module(industry) -> IndustryModule:
    try:
        return INDUSTRY_MODULES[Industry(industry)]
    except (KeyError, ValueError):
        raise UnsupportedIndustryError(f"Branche non supportee : {industry!r}") from None


def calculate_industry_payroll(
    employee: Employee,
    payroll_input: IndustryPayrollInput,
    month: int,
    year: int,
) -> IndustryPayrollResult:
    payroll_input.validate()
    module = get_industry_module(employee.industry)
    result = module.calculate(employee.industry_config, payroll_input, month, year)
    logger.debug(
        "Branche %s pour %s : imposable %s, exonere %s",
        module.industry.value, employee.id,
        result.taxable_additions, result.tax_free_additions,
    )
    for avertissement in result.warnings:
        logger.info("Branche %s (%s) : %s", module.industry.value, employee.id, avertissement)
    return result
