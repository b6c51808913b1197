"""
Form Validation

Every user submission is validated before any remote call is made.
Failures are reported to the user immediately and never retried.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, naming the offending field, for the user to correct.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from moneymate.models.ledger import TransactionType, categories_for
from moneymate.models.validation import ValidationIssue, ValidationResult


# Must match the max_length limits on the ledger models
NAME_MAX_LENGTH = 200
TEXT_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 1000
EMAIL_MAX_LENGTH = 320


class InputValidationError(ValueError):
    """User input rejected before reaching the store."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    @property
    def result(self) -> ValidationResult:
        return ValidationResult(issues=self.issues)

    def to_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


def parse_amount(raw: Any) -> Optional[Decimal]:
    """
    Parse a form amount into a Decimal.

    Accepts Decimal, int, float or strings like "1,234.50" and "$20".
    Returns None when the value is blank or not a finite number.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        amount = raw
    elif isinstance(raw, (int, float)):
        amount = Decimal(str(raw))
    else:
        text = re.sub(r"[$₹,\s]", "", str(raw))
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    return amount


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
    )


def _amount_issues(field: str, label: str, raw: Any) -> tuple[list[ValidationIssue], Optional[Decimal]]:
    amount = parse_amount(raw)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return [_missing(field, label)], None
    if amount is None or amount <= 0:
        return [ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} must be a positive number",
            suggested_fix="Enter an amount greater than zero",
        )], None
    return [], amount


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _too_long(field: str, label: str, value: Optional[str], limit: int) -> list[ValidationIssue]:
    if value is None or len(value) <= limit:
        return []
    return [ValidationIssue(
        field=field,
        issue_type="too_long",
        message=f"{label} must be at most {limit} characters",
        suggested_fix=f"Shorten it by {len(value) - limit} characters",
    )]


def _text_issues(field: str, label: str, value: Optional[str], limit: int) -> list[ValidationIssue]:
    """Required free text within the stored length limit."""
    if _blank(value):
        return [_missing(field, label)]
    return _too_long(field, label, value, limit)


def validate_debt_input(
    person_name: Optional[str],
    amount: Any,
    purpose: Optional[str],
) -> tuple[ValidationResult, Optional[Decimal]]:
    """
    Validate the add-debt form.

    Returns the result and the parsed amount (None if invalid).
    """
    issues = _text_issues("person_name", "Person name", person_name, NAME_MAX_LENGTH)

    amount_issues, parsed = _amount_issues("amount", "Amount", amount)
    issues.extend(amount_issues)

    issues.extend(_text_issues("purpose", "Purpose", purpose, TEXT_MAX_LENGTH))

    return ValidationResult(issues=issues), parsed


def validate_payment_input(
    amount: Any,
    remaining: Decimal,
    notes: Optional[str] = None,
) -> tuple[ValidationResult, Optional[Decimal]]:
    """A payment must be positive and may not exceed the remaining balance."""
    issues, parsed = _amount_issues("amount", "Payment amount", amount)
    if parsed is not None and parsed > remaining:
        issues.append(ValidationIssue(
            field="amount",
            issue_type="exceeds_remaining",
            message="Payment amount cannot exceed remaining debt",
            suggested_fix=f"Enter at most {remaining}",
        ))
        parsed = None
    issues.extend(_too_long("notes", "Notes", notes, NOTES_MAX_LENGTH))
    return ValidationResult(issues=issues), parsed


def validate_transaction_input(
    kind: Any,
    category: Optional[str],
    amount: Any,
    description: Optional[str],
) -> tuple[ValidationResult, Optional[Decimal]]:
    """Validate the add/edit transaction form."""
    issues = []

    amount_issues, parsed = _amount_issues("amount", "Amount", amount)
    issues.extend(amount_issues)

    try:
        kind = TransactionType(kind)
    except ValueError:
        issues.append(ValidationIssue(
            field="kind",
            issue_type="invalid_value",
            message="Type must be 'income' or 'expense'",
        ))
        kind = None

    if _blank(category):
        issues.append(_missing("category", "Category"))
    elif kind is not None and category not in categories_for(kind):
        issues.append(ValidationIssue(
            field="category",
            issue_type="invalid_value",
            message=f"'{category}' is not a {kind.value} category",
            suggested_fix=", ".join(categories_for(kind)),
        ))

    issues.extend(_text_issues("description", "Description", description, TEXT_MAX_LENGTH))

    return ValidationResult(issues=issues), parsed


def validate_exchange_rate(rate: Any) -> tuple[ValidationResult, Optional[Decimal]]:
    issues, parsed = _amount_issues("exchange_rate", "Exchange rate", rate)
    return ValidationResult(issues=issues), parsed


def validate_member_email(
    email: Optional[str],
    owner_email: Optional[str],
    existing_emails: Iterable[str],
) -> ValidationResult:
    """
    Validate a family member invitation.

    Rejects malformed addresses, the owner's own address and addresses
    that already have a grant.
    """
    issues = []
    email = (email or "").strip()
    local, _, domain = email.partition("@")

    if not local or not domain:
        issues.append(ValidationIssue(
            field="member_email",
            issue_type="invalid_value",
            message="Please enter a valid email address",
        ))
    elif len(email) > EMAIL_MAX_LENGTH:
        issues.extend(_too_long("member_email", "Email", email, EMAIL_MAX_LENGTH))
    elif owner_email and email.lower() == owner_email.strip().lower():
        issues.append(ValidationIssue(
            field="member_email",
            issue_type="self_reference",
            message="You cannot add yourself as a family member",
        ))
    elif email.lower() in {e.lower() for e in existing_emails}:
        issues.append(ValidationIssue(
            field="member_email",
            issue_type="duplicate",
            message="This email is already added as a family member",
        ))

    return ValidationResult(issues=issues)


def validate_currency_code(code: Optional[str], supported: Iterable[str]) -> ValidationResult:
    """The default display currency must be one the formatter knows."""
    issues = []
    supported = sorted(c.upper() for c in supported)
    normalized = (code or "").strip().upper()
    if normalized not in supported:
        issues.append(ValidationIssue(
            field="default_currency",
            issue_type="invalid_value",
            message=f"Unsupported currency: {code}",
            suggested_fix="Choose one of " + ", ".join(supported),
        ))
    return ValidationResult(issues=issues)


def raise_for_issues(*results: ValidationResult) -> None:
    """Raise InputValidationError if any of the results has errors."""
    errors = [
        issue
        for result in results
        for issue in result.issues
        if issue.severity == "error"
    ]
    if errors:
        raise InputValidationError(errors)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """One line per issue, for display under a form."""
    if result.is_valid:
        return "All fields look good."
    lines = []
    for issue in result.issues:
        line = f"- {issue.message}"
        if issue.suggested_fix:
            line += f" ({issue.suggested_fix})"
        lines.append(line)
    return "\n".join(lines)
