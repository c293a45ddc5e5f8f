from typing import List

from sagleads.utils.schema import ContractRecord, ValidationResult

ADDRESS_FIELDS = (
    "customer_address1",
    "customer_address2",
    "billing_address1",
    "billing_address2",
    "site_address1",
    "site_address2",
)


def validate_contract(record: ContractRecord) -> ValidationResult:
    """Minimum a contract needs before import: a customer name and some address."""
    errors: List[str] = []
    if not record.customer_name:
        errors.append("Customer name is required")
    if not any(getattr(record, f) for f in ADDRESS_FIELDS):
        errors.append("At least one address is required")
    return ValidationResult(valid=not errors, errors=errors)
