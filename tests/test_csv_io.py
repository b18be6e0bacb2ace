import sys
import os
import io
import csv
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from csv_io import format_decimal, parse_transactions, read_transactions, write_accounts
from errors import InputFileError, MalformedRecordError
from models import ClientAccount, Transaction, TransactionType

HEADER = "type, client, tx, amount"


def parse(*rows, header=HEADER):
    return list(parse_transactions(io.StringIO("\n".join([header, *rows]))))


class TestParseTransactions:
    def test_deposit(self):
        assert parse("deposit, 1, 2, 1.5") == [
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=2, amount=Decimal("1.5")),
        ]

    def test_whitespace_and_case(self):
        transactions = parse("  Withdrawal ,  3 ,4,   0.25  ", header="TYPE,Client , tx,amount")
        assert transactions[0].transaction_type == TransactionType.WITHDRAWAL
        assert transactions[0].client_id == 3
        assert transactions[0].transaction_id == 4
        assert transactions[0].amount == Decimal("0.25")

    def test_dispute_family_without_amount(self):
        transactions = parse("dispute, 1, 1,", "resolve, 1, 1", "chargeback,1,1")
        assert [t.transaction_type for t in transactions] == [
            TransactionType.DISPUTE,
            TransactionType.RESOLVE,
            TransactionType.CHARGEBACK,
        ]
        assert all(t.amount is None for t in transactions)

    def test_header_without_amount_column(self):
        transactions = parse("dispute, 1, 1", header="type, client, tx")
        assert transactions[0].amount is None

    def test_blank_lines_skipped(self):
        assert len(parse("deposit, 1, 1, 1", "", "deposit, 1, 2, 1")) == 2

    def test_identifier_bounds(self):
        transactions = parse("deposit, 65535, 4294967295, 1", "deposit, 0, 0, 1")
        assert transactions[0].client_id == 65535
        assert transactions[0].transaction_id == 4294967295
        assert transactions[1].client_id == 0

    def test_is_lazy(self):
        rows = parse_transactions(io.StringIO("\n".join([HEADER, "deposit, 1, 1, 1", "bogus, 1, 2, 1"])))
        assert next(rows).transaction_id == 1
        with pytest.raises(MalformedRecordError):
            next(rows)

    def test_oversized_field_in_row(self):
        big = "1" * (csv.field_size_limit() + 1)
        with pytest.raises(MalformedRecordError) as excinfo:
            parse("deposit, 1, 1, 1", f"deposit, 1, 2, {big}")
        assert excinfo.value.line_number == 3
        assert "invalid CSV" in str(excinfo.value)

    def test_oversized_field_in_header(self):
        big = "a" * (csv.field_size_limit() + 1)
        with pytest.raises(MalformedRecordError) as excinfo:
            parse("deposit, 1, 1, 1", header=f"type,client,tx,\"{big}\"")
        assert excinfo.value.line_number == 1
        assert "invalid CSV" in str(excinfo.value)


class TestMalformedRows:
    @pytest.mark.parametrize("row", [
        "deposit, 1, 1, 1.0, extra",
        "transfer, 1, 1, 1.0",
        ", 1, 1, 1.0",
        "deposit, x, 1, 1.0",
        "deposit, -1, 1, 1.0",
        "deposit, 65536, 1, 1.0",
        "deposit, 1, 4294967296, 1.0",
        "deposit, 1, 1.5, 1.0",
        "deposit, 1, , 1.0",
        "deposit, 1, 1, abc",
        "deposit, 1, 1, NaN",
        "withdrawal, 1, 1, Infinity",
        "deposit, 1, 1,",
        "withdrawal, 1, 1",
        "dispute, 1",
    ])
    def test_rejected(self, row):
        with pytest.raises(MalformedRecordError):
            parse(row)

    def test_line_number_reported(self):
        with pytest.raises(MalformedRecordError) as excinfo:
            parse("deposit, 1, 1, 1", "deposit, 1, 2, 1", "deposit, 1, 3, oops")
        assert excinfo.value.line_number == 4
        assert "line 4" in str(excinfo.value)
        assert "oops" in str(excinfo.value)

    def test_empty_input(self):
        with pytest.raises(MalformedRecordError):
            list(parse_transactions(io.StringIO("")))

    def test_bad_header(self):
        with pytest.raises(MalformedRecordError):
            parse("deposit, 1, 1, 1", header="kind, client, tx, amount")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse("deposit, 1, 1,")


class TestReadTransactions:
    def test_reads_file(self, tmp_path):
        csv_file = tmp_path / "in.csv"
        csv_file.write_text("type,client,tx,amount\ndeposit,1,1,3.0\n")
        transactions = list(read_transactions(str(csv_file)))
        assert transactions[0].amount == Decimal("3.0")

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputFileError) as excinfo:
            list(read_transactions(str(tmp_path / "nope.csv")))
        assert isinstance(excinfo.value, OSError)
        assert "nope.csv" in str(excinfo.value)

    def test_directory(self, tmp_path):
        with pytest.raises(InputFileError):
            list(read_transactions(str(tmp_path)))

    def test_binary_content(self, tmp_path):
        csv_file = tmp_path / "in.csv"
        csv_file.write_bytes(b"type,client,tx,amount\n\xff\xfe\xfa,1,1,1\n")
        with pytest.raises(InputFileError):
            list(read_transactions(str(csv_file)))


class TestWriteAccounts:
    def test_format_decimal(self):
        assert format_decimal(Decimal("12.0")) == "12.0"
        assert format_decimal(Decimal("1.2345")) == "1.2345"
        assert format_decimal(Decimal("1E+2")) == "100"
        assert format_decimal(Decimal("0.0000001")) == "0.0000001"
        assert format_decimal(Decimal("-30")) == "-30"

    def test_rows(self):
        first = ClientAccount(client_id=2, available=Decimal("1.5"), held=Decimal("0.25"))
        second = ClientAccount(client_id=1, available=Decimal("0"), held=Decimal("0"), locked=True)
        out = io.StringIO()

        write_accounts([first, second], out)

        assert out.getvalue() == (
            "client,available,held,total,locked\n"
            "2,1.5,0.25,1.75,false\n"
            "1,0,0,0,true\n"
        )

    def test_no_accounts(self):
        out = io.StringIO()
        write_accounts([], out)
        assert out.getvalue() == "client,available,held,total,locked\n"
