"""Streaming decoder for delimited text sources."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import IO, Iterable, Iterator

from bifrost.common.errors import DecodeError


@dataclass(frozen=True)
class RecordOptions:
    delimiter: str = ","
    lenient_quotes: bool = False
    variable_arity: bool = False
    trim_leading_space: bool = False


# GeoNames free-text columns carry stray double quotes.
GEO_RECORD_OPTIONS = RecordOptions(delimiter="\t", lenient_quotes=True)
# IFSC.csv rows sometimes omit trailing columns.
BANK_RECORD_OPTIONS = RecordOptions(delimiter=",", variable_arity=True, trim_leading_space=True)


def text_reader(stream: IO[bytes], encoding: str = "utf-8") -> io.TextIOWrapper:
    return io.TextIOWrapper(stream, encoding=encoding, newline="")


def _csv_reader(lines: Iterable[str], options: RecordOptions):
    if options.lenient_quotes:
        return csv.reader(
            lines,
            delimiter=options.delimiter,
            quoting=csv.QUOTE_NONE,
            skipinitialspace=options.trim_leading_space,
        )
    return csv.reader(
        lines,
        delimiter=options.delimiter,
        quotechar='"',
        doublequote=True,
        strict=True,
        skipinitialspace=options.trim_leading_space,
    )


def iter_rows(reader: Iterable[str], options: RecordOptions) -> Iterator[list[str]]:
    """Yield one list of fields per record of ``reader``.

    Blank lines are skipped. Unless ``variable_arity`` is set, every record
    must have the field count of the first one.
    """
    rows = _csv_reader(reader, options)
    expected: int | None = None
    while True:
        try:
            row = next(rows)
        except StopIteration:
            return
        except csv.Error as exc:
            raise DecodeError(f"Malformed record near line {rows.line_num}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Undecodable bytes near line {rows.line_num}") from exc

        if not row:
            continue
        if not options.variable_arity:
            if expected is None:
                expected = len(row)
            elif len(row) != expected:
                raise DecodeError(
                    f"Record on line {rows.line_num} has {len(row)} fields, expected {expected}"
                )
        yield row
