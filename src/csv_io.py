"""
CSV adapters around the ledger.

Input rows are ``type, client, tx, amount`` with a header line; output rows
are ``client, available, held, total, locked`` in first-seen client order.
Any row that cannot be decoded aborts the run with MalformedRecordError.
"""
import csv
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from errors import InputFileError, MalformedRecordError
from models import ClientAccount, Transaction, TransactionType

INPUT_COLUMNS = ("type", "client", "tx", "amount")
REQUIRED_INPUT_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """Stream transactions from a CSV file, one row at a time."""
    try:
        f = open(filepath, "r", newline="", encoding="utf-8")
    except OSError as e:
        raise InputFileError(filepath, e.strerror or str(e)) from e

    with f:
        try:
            yield from parse_transactions(f)
        except UnicodeDecodeError as e:
            raise InputFileError(filepath, f"not valid text ({e.reason})") from e


def parse_transactions(lines: Iterable[str]) -> Iterator[Transaction]:
    """Decode CSV text lines (header first) into transactions."""
    reader = csv.DictReader(lines, restkey=None)

    try:
        _check_header(reader.fieldnames)
        for row in reader:
            yield parse_csv_row(row, line_number=reader.line_num)
    except csv.Error as e:
        raise MalformedRecordError(f"invalid CSV: {e}", line_number=reader.line_num) from e


def _check_header(fieldnames: Optional[List[str]]) -> None:
    if fieldnames is None:
        raise MalformedRecordError("input is empty, expected a header row")

    columns = [name.strip().lower() for name in fieldnames]
    missing = [name for name in REQUIRED_INPUT_COLUMNS if name not in columns]
    unknown = [name for name in columns if name not in INPUT_COLUMNS]
    if missing or unknown:
        raise MalformedRecordError(
            f"bad header, expected columns {', '.join(INPUT_COLUMNS)}", line_number=1, row=fieldnames
        )


def parse_csv_row(row: Dict[Optional[str], object], line_number: Optional[int] = None) -> Transaction:
    """Parse one DictReader row into a Transaction."""
    raw = _raw_values(row)

    if None in row:
        raise MalformedRecordError("too many columns", line_number, raw)

    normalized = {}
    for key, value in row.items():
        normalized[key.strip().lower()] = value.strip() if isinstance(value, str) else None

    transaction_type_str = (normalized.get("type") or "").lower()
    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        raise MalformedRecordError(f"unknown transaction type {transaction_type_str!r}", line_number, raw) from None

    client_id = _parse_id(normalized.get("client"), "client", MAX_CLIENT_ID, line_number, raw)
    transaction_id = _parse_id(normalized.get("tx"), "tx", MAX_TRANSACTION_ID, line_number, raw)

    amount = None
    amount_str = normalized.get("amount")
    if amount_str:
        amount = _parse_amount(amount_str, line_number, raw)

    if transaction_type.carries_amount and amount is None:
        raise MalformedRecordError(f"{transaction_type.value} requires an amount", line_number, raw)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _raw_values(row: Dict[Optional[str], object]) -> List[str]:
    values: List[str] = []
    for value in row.values():
        if isinstance(value, list):
            values.extend(value)
        elif value is not None:
            values.append(value)
    return values


def _parse_id(value: Optional[str], column: str, maximum: int, line_number: Optional[int], raw: List[str]) -> int:
    if not value:
        raise MalformedRecordError(f"missing {column} id", line_number, raw)
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecordError(f"{column} id {value!r} is not an unsigned integer", line_number, raw)
    parsed = int(value)
    if parsed > maximum:
        raise MalformedRecordError(f"{column} id {parsed} out of range 0..{maximum}", line_number, raw)
    return parsed


def _parse_amount(value: str, line_number: Optional[int], raw: List[str]) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecordError(f"invalid amount {value!r}", line_number, raw) from None
    if not amount.is_finite():
        raise MalformedRecordError(f"amount {value!r} is not a finite number", line_number, raw)
    return amount


def format_decimal(value: Decimal) -> str:
    """Render a decimal exactly, without exponent notation."""
    return format(value, "f")


def account_row(account: ClientAccount) -> List[str]:
    return [
        str(account.client_id),
        format_decimal(account.available),
        format_decimal(account.held),
        format_decimal(account.total),
        str(account.locked).lower(),
    ]


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """Write the header and one row per account, in the order given."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for account in accounts:
        writer.writerow(account_row(account))
